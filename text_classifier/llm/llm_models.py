"""
Context window sizes for LLM models commonly used for classification.
"""

from typing import Dict, Optional


class Model:
    def __init__(self, name: str, context_length: int, litellm_name: str = ""):
        self.name = name
        self.context_length = context_length
        self.litellm_name = litellm_name

    def __repr__(self) -> str:
        return f"Model({self.name!r}, {self.context_length})"


class Models:
    # Anthropic models
    anthropic_claude_3_5_haiku_latest = Model(
        "anthropic:claude-3-5-haiku-latest", 200_000, "claude-3-5-haiku-latest"
    )
    anthropic_claude_sonnet_4_5 = Model(
        "anthropic:claude-sonnet-4-5", 200_000, "claude-sonnet-4-5"
    )

    # Google models
    google_gla_gemini_2_5_flash = Model(
        "google-gla:gemini-2.5-flash", 1_048_576, "gemini/gemini-2.5-flash"
    )

    # Groq models
    groq_llama_3_1_8b_instant = Model(
        "groq:llama-3.1-8b-instant", 131_072, "groq/llama-3.1-8b-instant"
    )

    # Mistral models
    mistral_small_latest = Model(
        "mistral:mistral-small-latest", 32_000, "mistral/mistral-small-latest"
    )

    # OpenAI models
    openai_gpt_4o = Model("openai:gpt-4o", 128_000, "gpt-4o")
    openai_gpt_4o_mini = Model("openai:gpt-4o-mini", 128_000, "gpt-4o-mini")
    openai_gpt_4_1_mini = Model("openai:gpt-4.1-mini", 1_047_576, "gpt-4.1-mini")

    # Test model
    test = Model("test", 100_000, "gpt-4o-mini")

    @classmethod
    def all(cls) -> Dict[str, Model]:
        return {
            value.name: value
            for value in vars(cls).values()
            if isinstance(value, Model)
        }


def find_model(model_name: str) -> Optional[Model]:
    """Look up a registered model by its provider:model name."""
    return Models.all().get(model_name)
