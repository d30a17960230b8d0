import os

from dotenv import load_dotenv

from patternscan.cli.commands import app

# Load .env file from ~/.patternscan/ if it exists
# Precedence: existing env vars > .env file (override=False)
load_dotenv(os.path.expanduser("~/.patternscan/.env"), override=False)

if __name__ == "__main__":
    app()
