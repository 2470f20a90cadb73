"""LLM calls for blog and LinkedIn drafts."""

from typing import Union

from langchain_anthropic import ChatAnthropic

from ..config import get_settings


def get_llm(max_tokens: int) -> ChatAnthropic:
    """Get Claude LLM for content drafting."""
    settings = get_settings()
    return ChatAnthropic(
        model=settings.default_model,
        api_key=settings.anthropic_api_key,
        max_tokens=max_tokens,
    )


def content_text(content: Union[str, list]) -> str:
    """Join the text blocks of a chat model response."""
    if isinstance(content, str):
        return content
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content
        if not isinstance(block, dict) or block.get("type") == "text"
    )


async def generate_text(prompt: str, max_tokens: int) -> str:
    """Run a single-turn prompt and return the text of the reply."""
    response = await get_llm(max_tokens).ainvoke(prompt)
    return content_text(response.content).strip()
