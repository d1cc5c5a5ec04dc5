#!/usr/bin/env python3
"""Create the CRM tables on the deployed database (idempotent)."""

import sys
from pathlib import Path

import boto3

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from repositories.connection import get_db_engine  # noqa: E402
from repositories.schema import metadata  # noqa: E402
from utils.settings import AppSettings  # noqa: E402


def main():
    settings = AppSettings.from_environment()

    # Fall back to the secret published by the deployed stack.
    if not settings.database_url and not settings.db_secret_arn:
        stack_name = f"MiniCrmStack-{settings.environment}"
        cf = boto3.client("cloudformation")
        try:
            resp = cf.describe_stacks(StackName=stack_name)
        except Exception as e:
            print(f"Error reading outputs of {stack_name}: {e}")
            sys.exit(1)
        outputs = {o["OutputKey"]: o["OutputValue"] for o in resp["Stacks"][0]["Outputs"]}
        settings.db_secret_arn = outputs.get("DbSecretArn")

    engine = get_db_engine(settings)
    if engine is None:
        print("No database configured: set DATABASE_URL or DB_SECRET_ARN")
        sys.exit(1)

    print(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    metadata.create_all(engine)
    for table in metadata.sorted_tables:
        print(f"  ok: {table.name}")


if __name__ == "__main__":
    main()
