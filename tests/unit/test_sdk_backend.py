"""
Unit tests for the boto3 deploy backend.
"""
import io
import json
import zipfile
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from lambda_file_deployer.lambda_func.backend import FunctionSpec, FunctionState
from lambda_file_deployer.lambda_func.sdk_backend import SdkDeployBackend


@pytest.fixture
def lambda_role(iam_client):
    """Create a Lambda execution role."""
    assume_role_policy = {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": "lambda.amazonaws.com"},
                "Action": "sts:AssumeRole"
            }
        ]
    }
    response = iam_client.create_role(
        RoleName="lambda-test-role",
        AssumeRolePolicyDocument=json.dumps(assume_role_policy)
    )
    return response['Role']['Arn']


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "handler.py"
    path.write_text("def lambda_handler(event, context):\n    return 'ok'\n")
    return path


@pytest.fixture
def mock_session():
    """A boto3 session whose clients are mocks."""
    session = MagicMock()
    mock_lambda_client = MagicMock()
    mock_sts_client = MagicMock()
    session.client.side_effect = lambda service, **kwargs: {
        'lambda': mock_lambda_client,
        'sts': mock_sts_client,
    }[service]
    return session


def test_session_is_built_from_credentials(credentials):
    """Test that the backend does not rely on ambient credentials."""
    with patch('boto3.Session') as mock_session_cls:
        SdkDeployBackend(credentials)

    mock_session_cls.assert_called_once_with(
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        region_name=credentials.region,
    )


def test_function_exists(lambda_client, lambda_role, credentials):
    """Test checking if a Lambda function exists."""
    backend = SdkDeployBackend(credentials)
    function_name = "test-function"

    # Function should not exist initially
    assert backend.function_exists(function_name).state is FunctionState.NOT_FOUND

    lambda_client.create_function(
        FunctionName=function_name,
        Runtime='python3.12',
        Role=lambda_role,
        Handler='index.handler',
        Code={'ZipFile': b'def handler(event, context): return "Hello, World!"'},
        Timeout=30,
        MemorySize=128,
    )

    # Function should exist now
    assert backend.function_exists(function_name).state is FunctionState.FOUND


def test_get_account_id(lambda_client, credentials):
    backend = SdkDeployBackend(credentials)

    assert backend.get_account_id() == "123456789012"


def test_function_exists_probe_error(credentials, mock_session):
    """Test that errors other than ResourceNotFoundException are reported as probe errors."""
    mock_lambda_client = mock_session.client('lambda')
    mock_lambda_client.get_function.side_effect = ClientError(
        {'Error': {'Code': 'AccessDeniedException', 'Message': 'denied'}},
        'GetFunction'
    )
    backend = SdkDeployBackend(credentials, session=mock_session)

    probe = backend.function_exists("test-function")

    assert probe.state is FunctionState.PROBE_ERROR
    assert "AccessDeniedException" in probe.error


def test_function_exists_connection_error(credentials, mock_session):
    mock_lambda_client = mock_session.client('lambda')
    mock_lambda_client.get_function.side_effect = EndpointConnectionError(
        endpoint_url="https://lambda.us-east-1.amazonaws.com"
    )
    backend = SdkDeployBackend(credentials, session=mock_session)

    assert backend.function_exists("test-function").state is FunctionState.PROBE_ERROR


def test_get_account_id_failure(credentials, mock_session):
    mock_session.client('sts').get_caller_identity.side_effect = ClientError(
        {'Error': {'Code': 'ExpiredToken', 'Message': 'expired'}},
        'GetCallerIdentity'
    )
    backend = SdkDeployBackend(credentials, session=mock_session)

    assert backend.get_account_id() is None


def test_create_function(credentials, mock_session, source_file):
    """Test creating a Lambda function."""
    mock_lambda_client = mock_session.client('lambda')
    mock_lambda_client.create_function.return_value = {
        'FunctionName': 'test-function',
        'FunctionArn': 'arn:aws:lambda:us-east-1:123456789012:function:test-function'
    }
    mock_waiter = MagicMock()
    mock_lambda_client.get_waiter.return_value = mock_waiter
    backend = SdkDeployBackend(credentials, session=mock_session)
    spec = FunctionSpec(
        function_name="test-function",
        runtime="python3.12",
        handler="handler.lambda_handler",
        role_arn="arn:aws:iam::123456789012:role/lambda-execution-role",
        timeout=60,
        memory_size=256,
    )

    result = backend.create_function(spec, str(source_file))

    assert result.success
    kwargs = mock_lambda_client.create_function.call_args.kwargs
    assert kwargs['FunctionName'] == 'test-function'
    assert kwargs['Runtime'] == 'python3.12'
    assert kwargs['Handler'] == 'handler.lambda_handler'
    assert kwargs['Role'] == spec.role_arn
    assert kwargs['Timeout'] == 60
    assert kwargs['MemorySize'] == 256
    with zipfile.ZipFile(io.BytesIO(kwargs['Code']['ZipFile'])) as archive:
        assert archive.namelist() == ['handler.py']

    # Verify the waiter was called
    mock_lambda_client.get_waiter.assert_called_once_with('function_active')
    mock_waiter.wait.assert_called_once_with(FunctionName='test-function')
    assert json.loads(result.output)['FunctionName'] == 'test-function'


def test_create_function_error(credentials, mock_session, source_file):
    mock_lambda_client = mock_session.client('lambda')
    mock_lambda_client.create_function.side_effect = ClientError(
        {'Error': {'Code': 'InvalidParameterValueException', 'Message': 'bad role'}},
        'CreateFunction'
    )
    backend = SdkDeployBackend(credentials, session=mock_session)
    spec = FunctionSpec("test-function", "python3.12", "handler.lambda_handler", "arn:aws:iam::1:role/x")

    result = backend.create_function(spec, str(source_file))

    assert not result.success
    assert "bad role" in result.error


def test_update_function_code(credentials, mock_session, source_file):
    """Test updating a Lambda function's code."""
    mock_lambda_client = mock_session.client('lambda')
    mock_lambda_client.update_function_code.return_value = {
        'FunctionArn': 'arn:aws:lambda:us-east-1:123456789012:function:test-function'
    }
    mock_waiter = MagicMock()
    mock_lambda_client.get_waiter.return_value = mock_waiter
    backend = SdkDeployBackend(credentials, session=mock_session)

    result = backend.update_function_code("test-function", str(source_file))

    assert result.success
    kwargs = mock_lambda_client.update_function_code.call_args.kwargs
    assert kwargs['FunctionName'] == 'test-function'
    assert zipfile.is_zipfile(io.BytesIO(kwargs['ZipFile']))
    mock_lambda_client.get_waiter.assert_called_once_with('function_updated')
    mock_waiter.wait.assert_called_once_with(FunctionName='test-function')
