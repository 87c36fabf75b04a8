"""Tests for Kubernetes job building and pod inspection."""

from kubernetes import client

from controller.src.k8s.job_builder import (
    build_job,
    build_job_name,
    get_job_status,
    timeout_seconds,
)
from controller.src.services.log_collector import get_exit_code, get_pull_failure

def test_job_name_is_dns_safe():
    name = build_job_name("registry.example.com/team/Node_Builder:18-alpine")

    assert name.startswith("lci-node-builder-")
    assert len(name) <= 63
    assert all(c.isalnum() or c == "-" for c in name)
    assert name == name.lower()
    assert build_job_name("alpine") != build_job_name("alpine")

def test_timeout_rounds_up_to_seconds():
    assert timeout_seconds(300000) == 300
    assert timeout_seconds(1500) == 2
    assert timeout_seconds(1) == 1

def test_build_job():
    job = build_job(
        image="node:18",
        command=["/bin/sh", "-c", "npm test"],
        working_dir="/workspace",
        env_vars={"CI": "true"},
        timeout_ms=90000,
        job_name="lci-node-test",
    )

    assert job.metadata.name == "lci-node-test"
    assert job.spec.backoff_limit == 0
    assert job.spec.active_deadline_seconds == 90

    pod_spec = job.spec.template.spec
    assert pod_spec.restart_policy == "Never"
    container = pod_spec.containers[0]
    assert container.image == "node:18"
    assert container.command == ["/bin/sh", "-c", "npm test"]
    assert container.working_dir == "/workspace"
    assert [(e.name, e.value) for e in container.env] == [("CI", "true")]

def test_build_job_defaults():
    job = build_job(image="alpine", command=["/bin/sh", "-c", "true"])

    assert job.metadata.name.startswith("lci-alpine-")
    assert job.spec.active_deadline_seconds == 300
    assert job.spec.template.spec.containers[0].env is None

def test_job_status():
    assert get_job_status(client.V1Job()) == "pending"
    assert get_job_status(client.V1Job(status=client.V1JobStatus(active=1))) == "running"
    assert get_job_status(client.V1Job(status=client.V1JobStatus(succeeded=1))) == "succeeded"
    assert get_job_status(client.V1Job(status=client.V1JobStatus(failed=1))) == "failed"

def test_job_status_deadline_exceeded():
    status = client.V1JobStatus(
        failed=1,
        conditions=[
            client.V1JobCondition(type="Failed", status="True", reason="DeadlineExceeded"),
        ],
    )
    assert get_job_status(client.V1Job(status=status)) == "timed_out"

def pod_with_state(state):
    return client.V1Pod(
        status=client.V1PodStatus(
            container_statuses=[
                client.V1ContainerStatus(
                    name="step",
                    image="nope:latest",
                    image_id="",
                    ready=False,
                    restart_count=0,
                    state=state,
                )
            ]
        )
    )

def test_pull_failure_detected():
    pod = pod_with_state(
        client.V1ContainerState(
            waiting=client.V1ContainerStateWaiting(reason="ErrImagePull", message="not found"),
        )
    )
    assert get_pull_failure(pod) == "ErrImagePull: not found"

def test_container_creating_is_not_pull_failure():
    pod = pod_with_state(
        client.V1ContainerState(
            waiting=client.V1ContainerStateWaiting(reason="ContainerCreating"),
        )
    )
    assert get_pull_failure(pod) is None
    assert get_pull_failure(None) is None

def test_exit_code_from_terminated_container():
    pod = pod_with_state(
        client.V1ContainerState(
            terminated=client.V1ContainerStateTerminated(exit_code=137, reason="OOMKilled"),
        )
    )
    assert get_exit_code(pod) == (137, "OOMKilled")
    assert get_exit_code(None) == (None, None)
