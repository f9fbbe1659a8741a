"""Prompt templates and rendering helpers."""

from .render_prompt import PROMPTS_DIR, load_system_prompt, render_context_header

__all__ = ["PROMPTS_DIR", "load_system_prompt", "render_context_header"]
