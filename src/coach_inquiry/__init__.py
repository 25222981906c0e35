from __future__ import annotations

from dotenv import load_dotenv

# Local dev: pick up credentials from a .env file at the project root.
load_dotenv()
