"""Local chat-model backend used by the story writer.

``TransformersChatBackend`` loads the tokenizer and model on first use, so importing this
module (and anything that depends on it) stays cheap; tests pass a stub callable instead.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import MODEL_NAME, SEED

log = logging.getLogger(__name__)

ChatMessage = Dict[str, str]


@dataclass
class DecodeCfg:
    max_new_tokens: int = 700
    temperature: float = 0.8
    top_p: float = 0.9
    top_k: int = 0
    repetition_penalty: float = 1.05
    stop: Optional[List[str]] = None   # e.g. ["</json>"]


class ChatBackend(Protocol):
    """Interface the story writer needs from a language model."""

    def __call__(self, messages: Sequence[ChatMessage], cfg: DecodeCfg) -> str:
        ...


class TransformersChatBackend:
    """Thin wrapper around a ``transformers`` causal LM with a chat template."""

    def __init__(
        self,
        model_name: str = MODEL_NAME,
        *,
        device: Optional[str] = None,
        seed: Optional[int] = SEED,
    ) -> None:
        self.model_name = model_name
        self.device = device
        self.seed = seed
        self._tokenizer: Any = None
        self._model: Any = None

    def _ensure_model(self):
        if self._model is not None:
            return self._tokenizer, self._model
        try:
            import torch
            from transformers import AutoModelForCausalLM, AutoTokenizer
        except ImportError as exc:  # pragma: no cover - exercised only when torch missing
            raise RuntimeError(
                "torch and transformers are required for TransformersChatBackend"
            ) from exc

        if self.seed is not None:
            random.seed(self.seed); torch.manual_seed(self.seed)
        if self.device is None:
            self.device = "cuda" if torch.cuda.is_available() else "cpu"
        dtype = torch.bfloat16 if self.device == "cuda" else torch.float32

        log.info("Loading chat model %s on %s", self.model_name, self.device)
        self._tokenizer = AutoTokenizer.from_pretrained(self.model_name, use_fast=True)
        self._model = AutoModelForCausalLM.from_pretrained(
            self.model_name,
            dtype=dtype,
            device_map="auto" if self.device == "cuda" else None,
        ).to(self.device)
        return self._tokenizer, self._model

    def _stopping_criteria(self, stop: List[str], tokenizer, start_idx: int):
        from transformers import StoppingCriteria, StoppingCriteriaList

        class _StopOnStrings(StoppingCriteria):
            def __call__(self, input_ids, scores, **kwargs) -> bool:
                # Only the continuation can contain a stop string.
                gen_ids = input_ids[0, start_idx:]
                if gen_ids.numel() == 0:
                    return False
                text = tokenizer.decode(gen_ids, skip_special_tokens=True)
                return any(s in text for s in stop)

        return StoppingCriteriaList([_StopOnStrings()])

    def __call__(self, messages: Sequence[ChatMessage], cfg: DecodeCfg) -> str:
        import torch

        tokenizer, model = self._ensure_model()
        text = tokenizer.apply_chat_template(
            list(messages),
            tokenize=False,
            add_generation_prompt=True,
        )
        enc = tokenizer(text, return_tensors="pt")
        enc = {k: v.to(self.device) for k, v in enc.items()}
        input_len = enc["input_ids"].shape[-1]

        stopping_criteria = None
        if cfg.stop:
            stopping_criteria = self._stopping_criteria(cfg.stop, tokenizer, input_len)

        with torch.no_grad():
            out_ids = model.generate(
                input_ids=enc["input_ids"],
                attention_mask=enc["attention_mask"],
                max_new_tokens=cfg.max_new_tokens,
                do_sample=True,
                temperature=cfg.temperature,
                top_p=cfg.top_p,
                top_k=cfg.top_k,
                repetition_penalty=cfg.repetition_penalty,
                eos_token_id=tokenizer.eos_token_id,
                stopping_criteria=stopping_criteria,
                pad_token_id=tokenizer.eos_token_id,
            )

        text_out = tokenizer.decode(out_ids[0, input_len:], skip_special_tokens=True).strip()
        for s in cfg.stop or ():
            if s in text_out:
                text_out = text_out.split(s, 1)[0]
                break
        return text_out


__all__ = ["ChatBackend", "ChatMessage", "DecodeCfg", "TransformersChatBackend"]
