"""Suggests shorter wordings for over-long subtitles using Hugging Face models."""

import logging
import torch
from abc import ABC, abstractmethod
from transformers import AutoTokenizer, AutoModelForSeq2SeqLM

from .exceptions import ShorteningError

logger = logging.getLogger(__name__)

class TextShortener(ABC):
    """Abstract base class for text-shortening services."""

    @abstractmethod
    def shorten(self, text: str, max_chars: int) -> str:
        """
        Rewrites text to fit within max_chars while keeping its meaning.

        The result is a suggestion only; callers must not assume it fits.

        Args:
            text: The subtitle text to shorten.
            max_chars: Character budget for the rewrite.

        Returns:
            The suggested text.

        Raises:
            ShorteningError: If no suggestion could be produced.
        """
        pass


def _clean(answer: str) -> str:
    return answer.strip().replace('"', '')


class HuggingFaceShortener(TextShortener):
    """Prompts a seq2seq instruction model for a shorter subtitle."""

    INITIAL_PROMPT = (
        "Rewrite this subtitle in fewer than {max_chars} characters. "
        "Keep the same meaning and stay as close to the original wording as possible. "
        "Answer with the subtitle text only.\n\nSubtitle: {text}"
    )
    RETRY_PROMPT = (
        "This subtitle is too long. Shorten it to under {max_chars} characters. "
        "This is a strict limit. Keep the meaning.\n\nSubtitle: {text}"
    )

    def __init__(self, model_name: str = "google/flan-t5-base", device: str = "cpu",
                 max_new_tokens: int = 64):
        """
        Initializes the HuggingFaceShortener.

        Args:
            model_name: The name of the Hugging Face seq2seq model.
            device: The device to run the model on ("cuda" or "cpu").
            max_new_tokens: Generation length cap.

        Raises:
            ValueError: If the specified device is invalid.
            ShorteningError: If the model or tokenizer fails to load.
        """
        self.model_name = model_name
        self.device = device
        self.max_new_tokens = max_new_tokens

        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA device requested but not available for the shortener. Falling back to CPU.")
            self.device = "cpu"
        elif self.device not in ["cuda", "cpu"]:
            raise ValueError(f"Invalid device specified: {self.device}. Choose 'cuda' or 'cpu'.")

        logger.info(f"Initializing HuggingFaceShortener with model '{self.model_name}' on device '{self.device}'")
        try:
            self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            self.model = AutoModelForSeq2SeqLM.from_pretrained(self.model_name)
            self.model.to(self.device)
            self.model.eval()
        except Exception as e:
            logger.error(f"Failed to load shortening model '{self.model_name}': {e}", exc_info=True)
            raise ShorteningError(f"Failed to load shortening model/tokenizer '{self.model_name}': {e}") from e

    def _generate(self, prompt: str) -> str:
        inputs = self.tokenizer(prompt, return_tensors="pt", truncation=True, max_length=512)
        inputs = {k: v.to(self.device) for k, v in inputs.items()}
        with torch.no_grad():
            tokens = self.model.generate(**inputs, max_new_tokens=self.max_new_tokens)
        return self.tokenizer.decode(tokens[0], skip_special_tokens=True)

    def shorten(self, text: str, max_chars: int) -> str:
        if not text.strip():
            return ""

        logger.debug(f"Shortening to {max_chars} chars: '{text[:50]}...'")
        try:
            suggestion = _clean(self._generate(self.INITIAL_PROMPT.format(max_chars=max_chars, text=text)))
            if not suggestion:
                raise ShorteningError("Model returned an empty suggestion.")

            if len(suggestion) > max_chars:
                logger.warning(f"First suggestion is still {len(suggestion)} chars, retrying with a stricter prompt")
                retry = _clean(self._generate(self.RETRY_PROMPT.format(max_chars=max_chars, text=suggestion)))
                if retry:
                    suggestion = retry
                if len(suggestion) > max_chars:
                    logger.warning(f"Suggestion is still {len(suggestion)} chars after retry; manual edit needed")
            return suggestion

        except ShorteningError:
            raise
        except Exception as e:
            logger.error(f"Error while shortening '{text[:50]}...': {e}", exc_info=True)
            raise ShorteningError(f"Hugging Face shortening failed: {e}") from e
