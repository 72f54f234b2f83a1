"""
Prompts package for Vaultify.
Contains the system prompt and request templates sent to the LLM.
"""

import os
from typing import Dict

# Cache for loaded prompts
_prompt_cache: Dict[str, str] = {}


def load_prompt(filename: str) -> str:
    """
    Load a prompt from a text file.

    Args:
        filename: Name of the prompt file (e.g., 'price_request.txt')

    Returns:
        Prompt content as string
    """
    if filename in _prompt_cache:
        return _prompt_cache[filename]

    prompt_dir = os.path.dirname(os.path.abspath(__file__))
    filepath = os.path.join(prompt_dir, filename)

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
            _prompt_cache[filename] = content
            return content
    except FileNotFoundError:
        raise FileNotFoundError(f"Prompt file not found: {filepath}")
    except Exception as e:
        raise RuntimeError(f"Error loading prompt file {filename}: {e}")


def render_prompt(filename: str, **values: str) -> str:
    """Load a template prompt and fill its {placeholders}."""
    return load_prompt(filename).format(**values)


DEFAULT_SYSTEM_PROMPT = load_prompt("system_prompt.txt")
