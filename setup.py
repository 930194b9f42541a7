from setuptools import find_packages, setup

setup(
    name="localscoop",
    version="0.1.0",
    description="Local business toolbar data from the Google Places API",
    packages=find_packages(include=["localscoop", "localscoop.*"]),
    package_data={"localscoop": ["templates/*.j2"]},
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "tenacity",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "boto3>=1.26.0",
        "Jinja2>=3.0",
        "tzdata",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
            "pytest-cov",
            "responses",
            "moto>=5.0",
            "freezegun",
        ]
    },
)
