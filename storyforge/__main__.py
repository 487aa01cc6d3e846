"""
Entry point for running StoryForge as a module.

Usage:
    python -m storyforge run descriptions.txt
    python -m storyforge config
    python -m storyforge --help
"""

from storyforge.app.main import main

if __name__ == "__main__":
    raise SystemExit(main())
