from setuptools import setup, find_packages

setup(
    name="georegistry",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.100.0",
        "uvicorn>=0.15.0",
        "python-dotenv>=0.19.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "email-validator>=2.0",
        "redis>=4.0.0",
        "sqlalchemy>=2.0",
        "passlib[argon2]>=1.7.4",
        "PyJWT>=2.4.0",
    ],
    extras_require={
        "mysql": ["mysqlclient>=2.0.3"],
        "test": ["pytest>=7.0", "httpx>=0.24"],
    },
)
