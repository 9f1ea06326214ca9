"""Read failing xUnit test results and report them as tracked issues."""

__version__ = "0.1.0"