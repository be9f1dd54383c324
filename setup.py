from setuptools import setup, find_packages

setup(
    name="salonbook",
    version="0.1.0",
    packages=find_packages(include=["salon", "salon.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "httpx>=0.27",
        "python-jose[cryptography]>=3.3",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "cryptography>=42.0",
        ],
    },
)
