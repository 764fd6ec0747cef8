"""Tests for the role classifier."""

from __future__ import annotations

import pytest

from tally_stats.models import FileChange
from tally_stats.roles import Role, classify, classify_commit, role_distribution


@pytest.mark.parametrize(
    "path, role",
    [
        ("src/main/java/com/x/Foo.java", Role.BACKEND),
        ("frontend/src/components/Button.tsx", Role.FRONTEND),
        ("Dockerfile", Role.INFRASTRUCTURE),
        ("README.md", Role.DOCUMENTATION),
        ("package.json", Role.CONFIGURATION),
        ("LICENSE", Role.OTHER),
    ],
)
def test_reference_paths(path, role):
    assert classify(path) == role


@pytest.mark.parametrize(
    "path, role",
    [
        # configuration beats infrastructure's *.yaml rule
        ("pnpm-lock.yaml", Role.CONFIGURATION),
        ("src/main/resources/application.yml", Role.CONFIGURATION),
        ("web/.env.production", Role.CONFIGURATION),
        ("frontend/vite.config.ts", Role.CONFIGURATION),
        # documentation beats everything below it
        ("docs/deploy/kubernetes.yaml", Role.DOCUMENTATION),
        ("backend/README.md", Role.DOCUMENTATION),
        ("README.txt", Role.DOCUMENTATION),
        ("CHANGELOG", Role.DOCUMENTATION),
        # documentation names only match as a whole stem
        ("src/main/java/com/acme/ChangelogService.java", Role.BACKEND),
        ("src/main/java/com/acme/ContributingController.java", Role.BACKEND),
        ("frontend/src/components/ReadmeViewer.tsx", Role.FRONTEND),
        ("src/main/java/com/acme/doc/Parser.java", Role.BACKEND),
        ("server/readme_renderer.py", Role.BACKEND),
        # infrastructure beats test and backend
        (".github/workflows/test.yml", Role.INFRASTRUCTURE),
        ("deploy/docker-compose.prod.yml", Role.INFRASTRUCTURE),
        ("terraform/main.tf", Role.INFRASTRUCTURE),
        ("k8s/service.json", Role.INFRASTRUCTURE),
        ("deploy/Dockerfile.dev", Role.INFRASTRUCTURE),
        ("src/main/java/com/acme/DockerfileParser.java", Role.BACKEND),
        # test beats backend and frontend
        ("src/test/java/com/x/FooTest.java", Role.TEST),
        ("frontend/src/components/Button.test.tsx", Role.TEST),
        ("app/models/user_spec.rb", Role.TEST),
        ("tests/test_api.py", Role.TEST),
        # backend beats frontend
        ("backend/src/index.ts", Role.BACKEND),
        ("services/billing/handler.go", Role.BACKEND),
        ("frontend/src/styles/main.scss", Role.FRONTEND),
        ("client/src/store.js", Role.FRONTEND),
        ("assets/logo.png", Role.OTHER),
    ],
)
def test_precedence(path, role):
    assert classify(path) == role


def test_case_and_separators_are_normalized():
    assert classify("SRC\\MAIN\\JAVA\\Foo.JAVA") == Role.BACKEND
    assert classify("/Docs/Guide.txt") == Role.DOCUMENTATION


def test_classify_is_deterministic():
    path = "frontend/src/components/Button.tsx"
    assert {classify(path) for _ in range(50)} == {Role.FRONTEND}


def test_classify_commit_distinct_roles():
    files = [FileChange("a/Foo.java"), FileChange("b/Bar.java"), FileChange("README.md")]
    assert classify_commit(files) == frozenset({Role.BACKEND, Role.DOCUMENTATION})


def test_role_distribution_counts_once_per_commit():
    commits = [
        [FileChange("src/main/java/A.java"), FileChange("src/main/java/B.java"), FileChange("README.md")],
        [FileChange("src/main/java/C.java")],
        [FileChange("Dockerfile")],
        [],  # no files: not part of the analyzed total
    ]
    distribution, analyzed = role_distribution(commits)

    assert analyzed == 3
    assert distribution["backend"].commit_count == 2
    assert distribution["backend"].percentage == 66.7
    assert distribution["documentation"].commit_count == 1
    assert distribution["documentation"].percentage == 33.3
    assert distribution["infrastructure"].commit_count == 1
    assert "frontend" not in distribution
    # Counts may exceed the analyzed total when commits touch several roles.
    assert sum(r.commit_count for r in distribution.values()) == 4


def test_role_distribution_empty():
    assert role_distribution([]) == ({}, 0)
