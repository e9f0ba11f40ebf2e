# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Any, Dict, List, Optional

# ============ Sketch -> fantasy art ============
# Used when a sketch arrives without a prompt of its own.
SKETCH_PROMPT = (
    "Transform this rough sketch into a piece of epic fantasy art.\n"
    "Keep the composition, the main shapes and their placement from the sketch.\n"
    "Interpret simple lines as the creatures, characters, buildings or landscape they suggest.\n"
    "Render it as a detailed, dramatic digital painting with rich lighting and color.\n"
    "Do not add any text, captions or borders."
)


def build_sketch_prompt(prompt: Optional[str]) -> str:
    """The caller's prompt when it has any content, otherwise the default instruction."""
    text = (prompt or "").strip()
    return text or SKETCH_PROMPT


def build_messages(prompt: str) -> List[Dict[str, Any]]:
    # The text relay adds nothing of its own: one user turn, prompt untouched.
    return [{"role": "user", "content": prompt}]
