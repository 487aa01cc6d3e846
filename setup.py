from setuptools import setup, find_packages

setup(
    name="storyforge",
    version="0.1.0",
    description="StoryForge - graph-backed user story generation with bounded self-correction",
    author="StoryForge Developers",
    packages=find_packages(include=["storyforge", "storyforge.*"]),
    include_package_data=True,
    package_data={
        "storyforge.agents.prompts": ["templates/*.yaml"],
    },
    install_requires=[
        # Core data modeling and validation
        "pydantic>=2.0.0",

        # Async HTTP client (for LLM providers)
        "httpx>=0.25.0",

        # Environment variables
        "python-dotenv>=1.0.0",

        # YAML support for prompt templates
        "pyyaml>=6.0.0",

        # Jinja2 for prompt templates
        "jinja2>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "storyforge = storyforge.app.main:main",
        ],
    },
    python_requires=">=3.11",
    package_dir={"": "."},
)
