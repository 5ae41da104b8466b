import os

import setuptools

VERSION_PATH = os.path.join(os.path.dirname(__file__), "src", "sentry_lambda", "VERSION")

setuptools.setup(
    name="sentry_lambda",
    version=open(VERSION_PATH).read().strip(),
    description="Report AWS lambda errors and invocation transactions to Sentry",
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=setuptools.find_packages("src", exclude=["test", "test.*"]),
    python_requires=">=3.8",
    install_requires=["sentry-sdk>=2.0.0,<3"],
    extras_require={"test": ["pytest", "mock"]},
    license="Apache License 2.0",
    classifiers=["Programming Language :: Python :: 3", "Operating System :: OS Independent"],
    long_description=open("README.md").read(),
    package_data={"sentry_lambda": ["VERSION"]},
)
