"""Text generation backend with a model-fallback cascade."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import litellm

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 10000


class LLMError(Exception):
    """Raised when the generation backend cannot produce a response."""
    pass


@dataclass
class GenerationRequest:
    """A single text generation request."""
    prompt: str
    system_prompt: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    model_hint: str | None = None
    max_tokens: int | None = None


@dataclass
class GenerationResponse:
    """Text returned by the backend, with the model that produced it."""
    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str = "stop"


class LLMBackend(ABC):
    """Provider-agnostic generation capability handed to the pipeline."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Generate text for a request.

        Raises:
            LLMError: If no response could be obtained.
        """
        ...


def _build_messages(request: GenerationRequest) -> list[dict[str, str]]:
    messages = []
    if request.system_prompt:
        messages.append({"role": "system", "content": request.system_prompt})
    messages.append({"role": "user", "content": request.prompt})
    return messages


class LiteLLMBackend(LLMBackend):
    """Generation via LiteLLM, falling back across models on rate limiting.

    Models are tried in order (a request's model_hint first). A rate-limit
    error moves on to the next model; any other provider error fails the
    request immediately.

    Example:
        backend = LiteLLMBackend(["openrouter/openai/gpt-oss-120b", "gemini/gemini-2.5-flash"])
        response = await backend.generate(GenerationRequest(prompt="..."))
    """

    def __init__(self, models: list[str], max_tokens: int = DEFAULT_MAX_TOKENS):
        if not models:
            raise ValueError("LiteLLMBackend needs at least one model")
        self.models = list(models)
        self.max_tokens = max_tokens

    def _cascade(self, model_hint: str | None) -> list[str]:
        if model_hint is None:
            return self.models
        return [model_hint] + [m for m in self.models if m != model_hint]

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        messages = _build_messages(request)
        last_error: Exception | None = None

        for model in self._cascade(request.model_hint):
            logger.debug(f"Attempting generation with {model} (temperature={request.temperature})")
            start = time.monotonic()
            try:
                response = await litellm.acompletion(
                    model=model,
                    messages=messages,
                    temperature=request.temperature,
                    max_tokens=request.max_tokens or self.max_tokens,
                )
            except litellm.RateLimitError as e:
                logger.warning(f"Rate limited on {model}, trying next model")
                last_error = e
                continue
            except Exception as e:
                logger.error(f"Generation failed on {model}: {e}")
                raise LLMError(f"Generation failed on {model}: {e}") from e

            elapsed = time.monotonic() - start
            try:
                choice = response.choices[0]
                text = choice.message.content or ""
                finish_reason = choice.finish_reason or "stop"
                usage = {}
                if getattr(response, "usage", None) is not None:
                    usage = {
                        "prompt_tokens": response.usage.prompt_tokens or 0,
                        "completion_tokens": response.usage.completion_tokens or 0,
                        "total_tokens": response.usage.total_tokens or 0,
                    }
            except (AttributeError, IndexError, TypeError) as e:
                logger.error(f"Malformed response from {model}: {e}")
                raise LLMError(f"Malformed response from {model}: {e}") from e

            logger.info(f"Generated {len(text)} chars with {model} in {elapsed:.1f}s")
            return GenerationResponse(text=text, model=model, usage=usage, finish_reason=finish_reason)

        raise LLMError(f"All models are rate limited: {last_error}")
