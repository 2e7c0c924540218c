"""staticguard - run the Gradle static analysis task and classify its verdict."""

__version__ = "0.3.0"
