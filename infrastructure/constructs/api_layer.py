"""
API layer construct: shared Lambda + HTTP API routes behind a JWT authorizer.

A single Lambda keeps the database pool warm across routes.
Uses Docker bundling for dependencies (runs in CI/CD pipeline).
"""

from aws_cdk import (
    BundlingOptions,
    Duration,
    aws_cognito as cognito,
    aws_ec2 as ec2,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigw,
    aws_apigatewayv2_authorizers as authorizers,
    aws_apigatewayv2_integrations as integrations,
    aws_logs as logs,
)
from constructs import Construct

# Routes served by handlers.main; /health stays public.
ROUTE_DEFS = (
    (apigw.HttpMethod.GET, "/dashboard"),
    (apigw.HttpMethod.GET, "/customers"),
    (apigw.HttpMethod.POST, "/customers"),
    (apigw.HttpMethod.GET, "/customers/{id}"),
    (apigw.HttpMethod.POST, "/customers/{id}/purchases"),
    (apigw.HttpMethod.PUT, "/customers/{id}/stage"),
    (apigw.HttpMethod.POST, "/customers/{id}/notes"),
    (apigw.HttpMethod.POST, "/customers/{id}/tags"),
    (apigw.HttpMethod.POST, "/customers/{id}/reminders"),
    (apigw.HttpMethod.GET, "/reminders/upcoming"),
    (apigw.HttpMethod.POST, "/reminders/{id}/sent"),
)


class ApiLayerConstruct(Construct):
    """Expose the CRM endpoints via HTTP API."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        vpc: ec2.IVpc,
        db_secret_arn: str,
        points_per_real: int,
        upcoming_reminder_days: int,
        lambda_memory_mb: int = 256,
        lambda_timeout_seconds: int = 15,
    ) -> None:
        super().__init__(scope, construct_id)

        # Store owners sign in with email; the token's sub resolves their store.
        self.user_pool = cognito.UserPool(
            self,
            "StoreOwners",
            self_sign_up_enabled=True,
            sign_in_aliases=cognito.SignInAliases(email=True),
        )
        self.user_pool_client = self.user_pool.add_client("WebClient")

        # Bundle Lambda code with dependencies using Docker (works in CI/CD)
        # Installs sqlalchemy, psycopg2-binary for database access
        bundled_code = _lambda.Code.from_asset(
            "src",
            bundling=BundlingOptions(
                image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                command=[
                    "bash", "-c",
                    "pip install -r requirements-lambda.txt -t /asset-output && "
                    "cp -r . /asset-output"
                ],
            ),
        )

        self.main_lambda = _lambda.Function(
            self,
            "ApiHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="handlers.main.lambda_handler",
            code=bundled_code,
            memory_size=lambda_memory_mb,
            timeout=Duration.seconds(lambda_timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            vpc=vpc,
            environment={
                "ENVIRONMENT": environment,
                "DB_SECRET_ARN": db_secret_arn,
                "POINTS_PER_REAL": str(points_per_real),
                "UPCOMING_REMINDER_DAYS": str(upcoming_reminder_days),
            },
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        self.api = apigw.HttpApi(
            self,
            "HttpApi",
            api_name=f"mini-crm-api-{environment}",
            cors_preflight=apigw.CorsPreflightOptions(
                allow_origins=["*"],
                allow_methods=[apigw.CorsHttpMethod.ANY],
                allow_headers=["Authorization", "Content-Type"],
            ),
        )

        integration = integrations.HttpLambdaIntegration(
            "LambdaIntegration", self.main_lambda
        )
        authorizer = authorizers.HttpUserPoolAuthorizer(
            "OwnerAuthorizer",
            self.user_pool,
            user_pool_clients=[self.user_pool_client],
        )

        self.api.add_routes(
            path="/health",
            methods=[apigw.HttpMethod.GET],
            integration=integration,
        )
        for method, path in ROUTE_DEFS:
            self.api.add_routes(
                path=path,
                methods=[method],
                integration=integration,
                authorizer=authorizer,
            )
