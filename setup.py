from setuptools import setup, find_packages

setup(
    name="lambda_file_deployer",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "boto3>=1.26.0",
    ],
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "lambda-file-deployer=lambda_file_deployer.cli:main",
        ],
    },
    description="A tool to deploy a single source file as an AWS Lambda function using the AWS CLI or boto3",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
            "moto>=5.0.0",
        ],
    },
)
