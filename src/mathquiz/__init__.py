"""Terminal math quiz runner with AI-generated questions."""

__all__: list[str] = []
