"""Token, time and cost accounting for LLM calls."""

from dataclasses import dataclass


@dataclass
class LLMUsageStats:
    """Running totals over one provider's lifetime."""
    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    seconds: float = 0.0
    cost_usd: float = 0.0

    def record(self, prompt_tokens: int, completion_tokens: int, seconds: float, cost_usd: float = 0.0) -> None:
        self.calls += 1
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens
        self.seconds += seconds
        self.cost_usd += cost_usd

    @property
    def tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def summary(self, name: str = "LLM") -> str:
        return (
            f"{name} usage: {self.calls} calls, {self.tokens:,} tokens "
            f"(prompt {self.prompt_tokens:,}, completion {self.completion_tokens:,}), "
            f"{self.seconds:.1f}s, ${self.cost_usd:.4f}"
        )
