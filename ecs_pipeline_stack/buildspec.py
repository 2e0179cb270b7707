"""
  Build spec run by the CodeBuild project:
  1. lints the CloudFormation template
  2. builds the application image and pushes it to ECR
  3. hands the template (and appspec.yml) to the deploy stage
"""


def build_spec_object() -> dict:
    return {
        "version": "0.2",
        "phases": {
            "install": {
                "commands": [
                    "echo Installing dependencies...",
                    "pip install cfn-lint",
                ]
            },
            "pre_build": {
                "commands": [
                    "echo Validating CloudFormation template...",
                    "cfn-lint $TEMPLATE_FILE",
                    "echo Logging into Amazon ECR...",
                    "aws ecr get-login-password --region $AWS_REGION"
                    " | docker login --username AWS --password-stdin $ECR_REPOSITORY_URI",
                ]
            },
            "build": {
                "commands": [
                    "echo Building Docker image...",
                    "docker build -t $ECR_REPOSITORY_URI:latest .",
                ]
            },
            "post_build": {
                "commands": [
                    "echo Pushing Docker image to ECR...",
                    "docker push $ECR_REPOSITORY_URI:latest",
                    "echo Build completed",
                ]
            },
        },
        "artifacts": {
            "files": [
                "$TEMPLATE_FILE",
                "appspec.yml",
            ]
        },
    }
