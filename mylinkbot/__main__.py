"""
Entry point for running mylinkbot as a module: python -m mylinkbot
"""

from mylinkbot.cli.commands import app

if __name__ == "__main__":
    app()
