"""
Journal Command Line Interface - Main entry point.
"""
from cli.main import create_app, default_commands

app = create_app(default_commands())

if __name__ == "__main__":
    app()
