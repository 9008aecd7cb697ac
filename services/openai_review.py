# services/openai_review.py
import os
import logging
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import OpenAI
from pydantic import BaseModel

from prompts import SYSTEM_PROMPT, build_photo_prompt
from schemas import PhotoAnalysis
from services.errors import (
    InvokerAuthError,
    InvokerBadRequest,
    InvokerError,
    InvokerNetworkError,
    InvokerRateLimited,
    InvokerTimeout,
)
from services.extraction import extract_photo_analysis

log = logging.getLogger(__name__)

# errors worth one more try on the fallback model
_FALLBACK_ON = (InvokerNetworkError, InvokerRateLimited)


class InvokerConfig(BaseModel):
    api_key: str = ""
    text_model: str = "gpt-4o"
    vision_model: str = "gpt-4o"
    fallback_model: Optional[str] = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "InvokerConfig":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            text_model=os.getenv("TEXT_MODEL", "gpt-4o"),
            vision_model=os.getenv("REVIEW_MODEL", "gpt-4o"),
            fallback_model=os.getenv("FALLBACK_MODEL", "gpt-4o-mini") or None,
            temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "2000")),
            timeout=float(os.getenv("OPENAI_TIMEOUT", "60")),
        )

    def models_for(self, vision: bool) -> List[str]:
        primary = self.vision_model if vision else self.text_model
        models = [primary]
        if self.fallback_model and self.fallback_model != primary:
            models.append(self.fallback_model)
        return models

    def deadline(self) -> float:
        """Upper bound for one invoke() including the fallback attempt."""
        return self.timeout * len(self.models_for(vision=True)) + 5


def _client(config: InvokerConfig) -> OpenAI:
    if not config.api_key:
        raise InvokerAuthError("OPENAI_API_KEY not set")
    return OpenAI(api_key=config.api_key, timeout=config.timeout, max_retries=0)


def _messages(prompt: str, images: Sequence[str], system: Optional[str]) -> List[Dict[str, Any]]:
    msgs: List[Dict[str, Any]] = []
    if system:
        msgs.append({"role": "system", "content": system.strip()})
    if images:
        content: Any = [{"type": "text", "text": prompt}]
        content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
    else:
        content = prompt
    msgs.append({"role": "user", "content": content})
    return msgs


def _call_openai(config: InvokerConfig, model: str, messages: List[Dict[str, Any]], json_response: bool) -> str:
    kwargs: Dict[str, Any] = dict(
        model=model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        messages=messages,
    )
    if json_response:
        kwargs["response_format"] = {"type": "json_object"}
    try:
        resp = _client(config).chat.completions.create(**kwargs)
    # APITimeoutError subclasses APIConnectionError, keep it first
    except openai.APITimeoutError as e:
        raise InvokerTimeout(f"{model} timed out after {config.timeout}s", str(e)) from e
    except openai.APIConnectionError as e:
        raise InvokerNetworkError(f"could not reach completion service for {model}", str(e)) from e
    except openai.RateLimitError as e:
        raise InvokerRateLimited(f"{model} rate limited", str(e)) from e
    except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
        raise InvokerAuthError("completion service rejected the credential", str(e)) from e
    except (openai.BadRequestError, openai.UnprocessableEntityError, openai.NotFoundError) as e:
        raise InvokerBadRequest(f"{model} rejected the request", str(e)) from e
    except openai.APIStatusError as e:
        raise InvokerNetworkError(f"{model} returned status {e.status_code}", str(e)) from e
    if not resp.choices:
        return ""
    return (resp.choices[0].message.content or "").strip()


def invoke(
    prompt: str,
    images: Optional[Sequence[str]] = None,
    *,
    config: InvokerConfig,
    system: Optional[str] = SYSTEM_PROMPT,
    json_response: bool = False,
) -> str:
    """One round trip to the completion service, returns the raw reply text.

    Images select the vision model and are sent in the order given.
    Network and rate-limit failures get one more try on the fallback model;
    every other failure is raised as its InvokerError subclass.
    """
    images = list(images or [])
    messages = _messages(prompt, images, system)
    last_err: InvokerError = InvokerError("no completion model configured")
    for model in config.models_for(vision=bool(images)):
        try:
            txt = _call_openai(config, model, messages, json_response)
            log.debug("completion from %s: %d chars", model, len(txt))
            return txt
        except _FALLBACK_ON as e:
            log.warning("completion via %s failed (%s): %s", model, e.kind, e.detail or e)
            last_err = e
            continue
    raise last_err


def evaluate_image(image_url: str, index: int, total: int, config: InvokerConfig) -> PhotoAnalysis:
    txt = invoke(
        build_photo_prompt(index, total),
        [image_url],
        config=config,
        json_response=True,
    )
    return extract_photo_analysis(txt)
