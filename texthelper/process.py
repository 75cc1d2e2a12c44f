"""AI text processing: prompt building, completion calls and rendering."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests
from anthropic import Anthropic
from openai import OpenAI

from .history import HistoryStore
from .prompts import DEFAULT_VARIANT, load_template, render_prompt
from .utils.markdown_render import render_markdown_to_html
from .utils.retry import llm_retry

logger = logging.getLogger(__name__)

ACTIONS = ("explain", "summarize", "rewrite")
DEFAULT_ACTION = "explain"
PROVIDERS = ("groq", "openai", "anthropic")

GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
GROQ_DEFAULT_MODEL = "llama-3.1-8b-instant"

EMPTY_RESPONSE_MESSAGE = "AI service returned an empty response."
UNAVAILABLE_MESSAGE = "AI service unavailable. Please try again later."


@dataclass
class ProcessResult:
    """Outcome of a single processing request."""

    action: str
    input_text: str
    output: str
    html: str
    ok: bool = True


def normalize_action(action: Optional[str]) -> str:
    """Map an action name onto a supported action, defaulting to explain."""
    key = (action or "").strip().lower()
    return key if key in ACTIONS else DEFAULT_ACTION


def build_prompt(
    text: str,
    action: Optional[str] = None,
    variant: str = DEFAULT_VARIANT,
) -> str:
    """Build the prompt sent to the AI service for the given action."""
    template = load_template(normalize_action(action), variant)
    return render_prompt(template, text=text)


class LLMClient:
    """Chat-completion client for Groq, OpenAI and Anthropic"""

    def __init__(self, provider: str = "groq", timeout: int = 30):
        self.provider = provider.lower()
        self.timeout = timeout

        if self.provider == "groq":
            self.client = None
            self.api_url = os.getenv("GROQ_API_URL", GROQ_API_URL)
            self.model = os.getenv("GROQ_MODEL", GROQ_DEFAULT_MODEL)
            self.headers = {
                "Authorization": f"Bearer {os.getenv('GROQ_API_KEY', '')}",
                "Content-Type": "application/json",
            }
        elif self.provider == "openai":
            self.client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
            self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        elif self.provider == "anthropic":
            self.client = Anthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))
            self.model = os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest")
        else:
            raise ValueError(f"Unsupported LLM provider: {provider}")

    @llm_retry()
    def generate(self, prompt: str, temperature: float = 0.7) -> Optional[str]:
        """Send a single-turn prompt and return the reply text

        Args:
            prompt: User prompt
            temperature: Sampling temperature

        Returns:
            Generated text, or None when the service returned no body
        """
        try:
            if self.provider == "groq":
                return self._generate_groq(prompt, temperature)

            if self.provider == "openai":
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=temperature,
                )
                return response.choices[0].message.content

            response = self.client.messages.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=2048,
            )
            return response.content[0].text if response.content else None

        except Exception as e:
            logger.error(f"LLM generation failed: {e}")
            raise

    def _generate_groq(self, prompt: str, temperature: float) -> Optional[str]:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        response = requests.post(
            self.api_url,
            headers=self.headers,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()

        if not response.content:
            return None
        data = response.json()
        if not data:
            return None
        return data["choices"][0]["message"]["content"]


def process_text(
    text: str,
    action: Optional[str],
    llm_client: LLMClient,
    history: Optional[HistoryStore] = None,
    variant: str = DEFAULT_VARIANT,
) -> ProcessResult:
    """Run text through the AI service and render the reply as HTML

    Service failures do not raise: the reply is replaced by a fallback
    message and the result is marked as not ok.

    Args:
        text: User text to process
        action: One of ACTIONS; anything else is treated as explain
        llm_client: Client used to call the AI service
        history: Optional store that records the request
        variant: Prompt template variant

    Returns:
        ProcessResult with the raw reply and its HTML rendering
    """
    if not text or not text.strip():
        raise ValueError("Input text must not be empty")

    action = normalize_action(action)
    prompt = build_prompt(text, action, variant)
    ok = True

    try:
        logger.info(f"Processing {len(text)} characters with action={action}")
        output = llm_client.generate(prompt)
    except Exception as e:
        logger.error(f"AI request failed after retries: {e}")
        output = UNAVAILABLE_MESSAGE
        ok = False

    if not output:
        logger.warning("AI service returned an empty response")
        output = EMPTY_RESPONSE_MESSAGE
        ok = False

    result = ProcessResult(
        action=action,
        input_text=text,
        output=output,
        html=render_markdown_to_html(output),
        ok=ok,
    )

    if history is not None:
        history.add(text, action, output)

    return result
