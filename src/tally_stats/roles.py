"""Classify changed files into engineering roles.

Rules are tried in a fixed order and the first tier that matches wins, so a
``docker-compose.yml`` is infrastructure (not configuration) and
``frontend/src/App.test.tsx`` is a test (not frontend).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from .models import FileChange, RoleStats, percentage


class Role(str, Enum):
    CONFIGURATION = "configuration"
    DOCUMENTATION = "documentation"
    INFRASTRUCTURE = "infrastructure"
    TEST = "test"
    BACKEND = "backend"
    FRONTEND = "frontend"
    OTHER = "other"


@dataclass(frozen=True)
class _Rule:
    role: Role
    names: frozenset[str] = frozenset()
    stems: frozenset[str] = frozenset()
    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()
    infixes: tuple[str, ...] = ()
    dirs: tuple[str, ...] = ()

    def matches(self, path: str, name: str) -> bool:
        return (
            name in self.names
            or name.split(".", 1)[0] in self.stems
            or name.startswith(self.prefixes)
            or name.endswith(self.suffixes)
            or any(infix in name for infix in self.infixes)
            or any(d in path for d in self.dirs)
        )


# Matched against the lower-cased file name and the lower-cased path with a
# leading "/" (so "docs/x.txt" contains "/docs/"). A stem is the file name up
# to its first dot: "readme.txt" and "dockerfile.dev" match, "readmeviewer.tsx"
# does not.
RULES: tuple[_Rule, ...] = (
    _Rule(
        Role.CONFIGURATION,
        names=frozenset({
            "package.json", "package-lock.json", "npm-shrinkwrap.json", "yarn.lock",
            "pnpm-lock.yaml", "pnpm-workspace.yaml",
            "pom.xml", "build.gradle", "build.gradle.kts", "settings.gradle",
            "settings.gradle.kts", "gradle.properties", "gradlew", "gradlew.bat",
            "requirements.txt", "pipfile", "pyproject.toml", "setup.cfg", "setup.py",
            "tox.ini", "mypy.ini", "go.mod", "go.sum", "cargo.toml", "gemfile",
            "composer.json", "tsconfig.json", "jsconfig.json",
            "application.properties", "application.yml", "application.yaml",
            ".env", ".babelrc", ".editorconfig", ".npmrc", ".nvmrc",
        }),
        prefixes=(
            ".env.", "tsconfig.", "application-", ".eslintrc", "eslint.config",
            ".prettierrc", "prettier.config", "babel.config", "webpack.config",
            "vite.config", "rollup.config", "jest.config", "vitest.config",
            "next.config", "nuxt.config", "tailwind.config", "postcss.config",
        ),
        suffixes=(".lock",),
    ),
    _Rule(
        Role.DOCUMENTATION,
        stems=frozenset({"readme", "changelog", "contributing"}),
        suffixes=(".md", ".markdown", ".rst", ".adoc"),
        dirs=("/docs/",),
    ),
    _Rule(
        Role.INFRASTRUCTURE,
        stems=frozenset({"dockerfile", "docker-compose", "jenkinsfile"}),
        prefixes=(".gitlab-ci", ".travis"),
        suffixes=(".dockerfile", ".yml", ".yaml", ".tf", ".tfvars", ".hcl"),
        dirs=(
            "/.github/workflows/", "/.circleci/", "/terraform/", "/k8s/",
            "/kubernetes/", "/helm/", "/ansible/", "/infra/",
        ),
    ),
    _Rule(
        Role.TEST,
        prefixes=("test_",),
        infixes=(".test.", ".spec.", "_test.", "_spec."),
        dirs=("/test/", "/tests/", "/__tests__/", "/spec/", "/specs/", "/e2e/"),
    ),
    _Rule(
        Role.BACKEND,
        suffixes=(
            ".java", ".kt", ".scala", ".go", ".rs", ".py", ".rb", ".php",
            ".cs", ".ex", ".exs", ".erl", ".sql",
        ),
        dirs=("/src/main/java/", "/src/main/kotlin/", "/src/main/scala/", "/backend/", "/server/"),
    ),
    _Rule(
        Role.FRONTEND,
        suffixes=(
            ".jsx", ".tsx", ".vue", ".svelte", ".html", ".htm",
            ".css", ".scss", ".sass", ".less", ".styl",
        ),
        dirs=(
            "/frontend/", "/client/", "/web/", "/components/", "/pages/",
            "/views/", "/styles/", "/public/",
        ),
    ),
)


def classify(path: str) -> Role:
    normalized = "/" + path.replace("\\", "/").lower().lstrip("/")
    name = normalized.rsplit("/", 1)[-1]
    for rule in RULES:
        if rule.matches(normalized, name):
            return rule.role
    return Role.OTHER


def classify_commit(files: Iterable[FileChange]) -> frozenset[Role]:
    """Distinct roles touched by one commit."""
    return frozenset(classify(f.path) for f in files)


def role_distribution(commit_files: Sequence[Sequence[FileChange]]) -> tuple[dict[str, RoleStats], int]:
    """Count each role once per commit that touched it.

    Commits without any file changes (failed detail fetches, empty merges)
    are left out of the analyzed total. Returns the distribution keyed by
    role name and the number of commits analyzed.
    """
    analyzed = [files for files in commit_files if files]
    counts: Counter[Role] = Counter()
    for files in analyzed:
        counts.update(classify_commit(files))
    distribution = {
        role.value: RoleStats(
            role=role.value,
            commit_count=counts[role],
            percentage=percentage(counts[role], len(analyzed)),
        )
        for role in Role
        if counts[role]
    }
    return distribution, len(analyzed)
