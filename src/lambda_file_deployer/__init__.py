"""
Lambda File Deployer - deploy a single source file as an AWS Lambda function.

This package provides tools for managing the AWS credentials used for a deploy
(manually entered, locally cached, or read from AWS CLI profiles) and for
creating or updating a Lambda function through the AWS CLI or boto3.
"""

__version__ = "0.1.0"
