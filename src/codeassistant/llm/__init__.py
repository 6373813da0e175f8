from codeassistant.llm.client import generate
from codeassistant.llm.config import LLMConfig

__all__ = ["LLMConfig", "generate"]
