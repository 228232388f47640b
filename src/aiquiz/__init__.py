"""AI Quiz: quiz service with session auth, AI explanations and usage quotas."""

__version__ = "1.0.0"
