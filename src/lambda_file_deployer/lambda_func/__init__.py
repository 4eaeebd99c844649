"""Lambda function deployment through the AWS CLI or boto3."""
