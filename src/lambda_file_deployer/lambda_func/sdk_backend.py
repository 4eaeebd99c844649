"""
boto3 deploy backend.
Calls the Lambda API directly through a session scoped to one set of credentials.
"""
import json
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lambda_file_deployer.credentials.models import Credentials
from lambda_file_deployer.lambda_func.backend import (
    DeployBackend,
    DeployResult,
    FunctionSpec,
    ProbeResult,
)
from lambda_file_deployer.packaging.archive import build_archive

logger = logging.getLogger(__name__)


class SdkDeployBackend(DeployBackend):
    """
    Deploys Lambda functions through boto3.

    The session is built from the resolved credentials for this backend only;
    no default session or environment credentials are involved.
    """

    name = "boto3"

    def __init__(self, credentials: Credentials, session: Optional[boto3.Session] = None):
        """
        Initialize the boto3 backend.

        Args:
            credentials: Credentials used for every call
            session: Pre-built session (a new one is created from the credentials if omitted)
        """
        super().__init__(credentials)
        self.session = session or boto3.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            region_name=credentials.region,
        )
        self.lambda_client = self.session.client('lambda', region_name=credentials.region)

    def function_exists(self, function_name: str) -> ProbeResult:
        try:
            self.lambda_client.get_function(FunctionName=function_name)
            return ProbeResult.found()
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                return ProbeResult.not_found()
            logger.error(f"Error checking Lambda function {function_name}: {e}")
            return ProbeResult.probe_error(str(e))
        except BotoCoreError as e:
            logger.error(f"Error checking Lambda function {function_name}: {e}")
            return ProbeResult.probe_error(str(e))

    def get_account_id(self) -> Optional[str]:
        try:
            sts_client = self.session.client('sts', region_name=self.credentials.region)
            return sts_client.get_caller_identity()['Account']
        except (ClientError, BotoCoreError, KeyError) as e:
            logger.error(f"Error getting AWS account ID: {e}")
            return None

    def create_function(self, spec: FunctionSpec, file_path: str) -> DeployResult:
        zip_bytes = build_archive(file_path)
        params = {
            'FunctionName': spec.function_name,
            'Runtime': spec.runtime,
            'Role': spec.role_arn,
            'Handler': spec.handler,
            'Code': {
                'ZipFile': zip_bytes
            },
            'Timeout': spec.timeout,
            'MemorySize': spec.memory_size,
        }
        if spec.description:
            params['Description'] = spec.description

        try:
            response = self.lambda_client.create_function(**params)
            logger.info(f"Created Lambda function: {response['FunctionArn']}")

            # Wait for function to be active
            waiter = self.lambda_client.get_waiter('function_active')
            waiter.wait(FunctionName=spec.function_name)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error creating Lambda function {spec.function_name}: {e}")
            return DeployResult.failed(str(e))

        return DeployResult.ok(output=json.dumps(_summary(response)))

    def update_function_code(self, function_name: str, file_path: str) -> DeployResult:
        zip_bytes = build_archive(file_path)
        try:
            response = self.lambda_client.update_function_code(
                FunctionName=function_name,
                ZipFile=zip_bytes
            )
            logger.info(f"Updated Lambda function code: {response['FunctionArn']}")

            # Wait for function to be updated
            waiter = self.lambda_client.get_waiter('function_updated')
            waiter.wait(FunctionName=function_name)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error updating Lambda function code for {function_name}: {e}")
            return DeployResult.failed(str(e))

        return DeployResult.ok(output=json.dumps(_summary(response)))


def _summary(response: dict) -> dict:
    keys = ('FunctionName', 'FunctionArn', 'Runtime', 'Handler', 'CodeSize', 'LastModified')
    return {key: response[key] for key in keys if key in response}
