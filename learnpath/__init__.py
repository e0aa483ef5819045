"""learnpath - interview preparation learning-plan API."""

__version__ = "0.1.0"
