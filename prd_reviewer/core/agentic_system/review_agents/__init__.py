"""Review agent definitions and prompts."""
