"""Metadata generation backends for pdfnotary."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

LOGGER = logging.getLogger(__name__)

METADATA_PROMPT = """You extract metadata from a PDF's text.
Return *valid JSON* with keys:
- title (string)
- summary (<=120 words, string)
- doc_type (string)
- date_iso (YYYY-MM-DD or empty string)
- parties (array of strings)
- tags (array of strings)
- extract_confidence (0..1 number summarizing your overall extraction confidence)

If unknown, use empty strings/arrays. No extra commentary."""

SYSTEM_MESSAGE = "You output only strict JSON for metadata extraction."


class GenerationUnavailable(RuntimeError):
    """Raised when the backend cannot produce a metadata candidate."""


@dataclass(frozen=True)
class GenerationConfig:
    """Configuration for metadata generation."""

    model: str = "Qwen/Qwen2.5-1.8B-Instruct"
    max_new_tokens: int = 512
    temperature: float = 0.2
    use_model: bool = False
    device: str | None = None
    max_input_chars: int = 8000


class MetadataGenerator(Protocol):
    """Protocol describing generation behaviour."""

    def generate(self, text: str) -> Mapping[str, Any]:
        """Return an unstructured candidate metadata mapping for ``text``."""


@dataclass(frozen=True)
class StaticMetadataGenerator:
    """Returns the same candidate for every document; used offline and in tests."""

    candidate: Mapping[str, Any] = field(default_factory=dict)

    def generate(self, text: str) -> Mapping[str, Any]:
        return dict(self.candidate)


def parse_candidate(completion: str) -> dict[str, Any]:
    """Parse the first JSON object found in a model completion."""

    start = completion.find("{")
    end = completion.rfind("}")
    if start == -1 or end <= start:
        raise GenerationUnavailable("Model output did not contain a JSON object")
    try:
        parsed = json.loads(completion[start : end + 1])
    except json.JSONDecodeError as exc:
        raise GenerationUnavailable(f"Model output was not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise GenerationUnavailable("Model output was not a JSON object")
    return parsed


class QwenMetadataGenerator:
    """Generator that optionally calls into Qwen models via Transformers."""

    def __init__(self, config: GenerationConfig | None = None, prompt: str = METADATA_PROMPT) -> None:
        self._config = config or GenerationConfig()
        self._prompt = prompt
        self._tokenizer = None
        self._model = None
        if not self._config.use_model:
            LOGGER.info("QwenMetadataGenerator running without a model; callers will fall back.")
            return
        try:
            from transformers import AutoModelForCausalLM, AutoTokenizer

            self._tokenizer = AutoTokenizer.from_pretrained(
                self._config.model,
                trust_remote_code=True,
            )
            self._model = AutoModelForCausalLM.from_pretrained(
                self._config.model,
                trust_remote_code=True,
            )
            if self._tokenizer.pad_token is None and self._tokenizer.eos_token is not None:
                self._tokenizer.pad_token = self._tokenizer.eos_token
            if getattr(self._model.config, "pad_token_id", None) is None and self._tokenizer.pad_token_id is not None:
                self._model.config.pad_token_id = self._tokenizer.pad_token_id
            if self._config.device:
                self._model.to(self._config.device)
            LOGGER.info("Loaded generation model %s", self._config.model)
        except Exception as exc:  # pragma: no cover - defensive import
            LOGGER.warning("Metadata generation model unavailable: %s", exc)
            self._tokenizer = None
            self._model = None

    @property
    def available(self) -> bool:
        return self._tokenizer is not None and self._model is not None

    def generate(self, text: str) -> Mapping[str, Any]:
        if not self.available:
            raise GenerationUnavailable(f"Model {self._config.model} is not loaded")
        messages = self._build_messages(text)
        if hasattr(self._tokenizer, "apply_chat_template"):
            prompt = self._tokenizer.apply_chat_template(
                messages,
                tokenize=False,
                add_generation_prompt=True,
            )
        else:
            prompt = f"{SYSTEM_MESSAGE}\n\n{messages[-1]['content']}"
        import torch

        tokenized = self._tokenizer(
            prompt,
            return_tensors="pt",
            padding=True,
        )
        input_ids = tokenized.input_ids
        attention_mask = tokenized.attention_mask
        prompt_length = input_ids.shape[1]
        if self._config.device:
            input_ids = input_ids.to(self._config.device)
            attention_mask = attention_mask.to(self._config.device)
        with torch.no_grad():
            output = self._model.generate(
                input_ids,
                attention_mask=attention_mask,
                max_new_tokens=self._config.max_new_tokens,
                temperature=self._config.temperature,
                do_sample=self._config.temperature > 0,
            )
        generated_tokens = output[0][prompt_length:]
        completion = self._tokenizer.decode(generated_tokens, skip_special_tokens=True)
        return parse_candidate(completion)

    def _build_messages(self, text: str) -> list[dict[str, str]]:
        excerpt = text[: self._config.max_input_chars]
        return [
            {"role": "system", "content": SYSTEM_MESSAGE},
            {"role": "user", "content": f"{self._prompt}\n\nPDF_TEXT:\n{excerpt}"},
        ]
