from ecs_pipeline_stack.buildspec import build_spec_object


def test_phases_lint_then_build_then_push():
    phases = build_spec_object()["phases"]

    assert list(phases) == ["install", "pre_build", "build", "post_build"]
    assert "pip install cfn-lint" in phases["install"]["commands"]
    assert "cfn-lint $TEMPLATE_FILE" in phases["pre_build"]["commands"]
    assert any("docker login" in c for c in phases["pre_build"]["commands"])
    assert "docker build -t $ECR_REPOSITORY_URI:latest ." in phases["build"]["commands"]
    assert "docker push $ECR_REPOSITORY_URI:latest" in phases["post_build"]["commands"]


def test_artifacts_carry_template_to_deploy_stage():
    spec = build_spec_object()

    assert spec["version"] == "0.2"
    assert spec["artifacts"]["files"] == ["$TEMPLATE_FILE", "appspec.yml"]
