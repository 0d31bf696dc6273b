"""Import zsh history files into a zsh-histdb SQLite database."""

__version__ = "0.1.0"
