"""GitHub Actions build workflow generation.

Builds a declarative model of the multi-platform library build (trigger,
environment, matrix, ordered steps), serialises it with PyYAML, and applies a
single post-serialisation pass that removes the quoting YAML 1.1 serialisers
put around the ``on`` key, ``${{ ... }}`` expressions and the retention-days
number.

Typical usage::

    model = build_model("my_plugin")
    text = serialize(model)
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import ScaffoldIOError
from .utils import atomic_write_text, print_success

DEFAULT_WORKFLOW_PATH = ".github/workflows/build.yml"


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class PlatformVariant(BaseModel):
    """One platform/target combination the workflow builds for."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    runner: str
    target: str
    lib_suffix: str = Field(alias="lib-suffix")


class Step(BaseModel):
    """A single job step: an action reference or a shell command."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    uses: str | None = None
    with_: dict[str, str] | None = Field(default=None, alias="with")
    run: str | None = None
    shell: str | None = None

    @model_validator(mode="after")
    def _check_action(self) -> "Step":
        if (self.uses is None) == (self.run is None):
            raise ValueError(f"step {self.name!r} must set exactly one of 'uses' or 'run'")
        if self.uses is not None and self.shell is not None:
            raise ValueError(f"step {self.name!r}: 'shell' only applies to 'run' steps")
        return self


class Matrix(BaseModel):
    include: list[PlatformVariant]


class Strategy(BaseModel):
    matrix: Matrix


class BuildJob(BaseModel):
    """The build job; ``steps`` run in list order."""

    model_config = ConfigDict(populate_by_name=True)

    condition: str | None = Field(default=None, alias="if")
    runs_on: str | None = Field(default=None, alias="runs-on")
    strategy: Strategy
    steps: list[Step]


class Jobs(BaseModel):
    build: BuildJob


class PushTrigger(BaseModel):
    branches: list[str]
    paths: list[str]


class Trigger(BaseModel):
    push: PushTrigger


class WorkflowModel(BaseModel):
    """A complete workflow, ready to serialise."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    trigger: Trigger = Field(alias="on")
    env: dict[str, str]
    jobs: Jobs

    def to_document(self) -> dict[str, Any]:
        """Return the workflow as plain data keyed by the CI's field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Fixed build definition
# ---------------------------------------------------------------------------

# Artifact names key off matrix.name, so this order is fixed.
PLATFORMS: tuple[PlatformVariant, ...] = (
    PlatformVariant(
        name="linux-amd64",
        runner="ubuntu-latest",
        target="x86_64-unknown-linux-gnu",
        lib_suffix=".so",
    ),
    PlatformVariant(
        name="win-amd64",
        runner="windows-latest",
        target="x86_64-pc-windows-msvc",
        lib_suffix=".dll",
    ),
    PlatformVariant(
        name="macos-amd64",
        runner="macos-latest",
        target="x86_64-apple-darwin",
        lib_suffix=".dylib",
    ),
    PlatformVariant(
        name="macos-arm64",
        runner="macos-latest",
        target="aarch64-apple-darwin",
        lib_suffix=".dylib",
    ),
)

SKIP_CI_CONDITION = "!contains(github.event.head_commit.message, '[skip ci]')"

_PREPARE_RELEASE_SCRIPT = """\
if [[ "${{ matrix.target }}" == "x86_64-pc-windows-msvc" ]]; then
    LIB_PREFIX=""
    LIB_OUTPUT="target/${{ matrix.target }}/release/${PROJECT_NAME}${{ matrix.lib-suffix }}"
else
    LIB_PREFIX="lib"
    LIB_OUTPUT="target/${{ matrix.target }}/release/${LIB_PREFIX}${PROJECT_NAME}${{ matrix.lib-suffix }}"
fi
LIB_RELEASE="${PROJECT_NAME}${{ matrix.lib-suffix }}"
if [ ! -f "${LIB_OUTPUT}" ]; then
    echo "Library not found at ${LIB_OUTPUT}"
    exit 1
fi
cp "${LIB_OUTPUT}" "./dist/${LIB_RELEASE}"
ls -l dist/
"""


def build_model(project_name: str, workflow_path: str = DEFAULT_WORKFLOW_PATH) -> WorkflowModel:
    """Construct the build workflow for *project_name*.

    The project name is the only input: it becomes the ``PROJECT_NAME``
    environment variable and prefixes the uploaded artifact name.
    """
    steps = [
        Step(name="Checkout", uses="actions/checkout@v4"),
        Step(
            name="Install Rust",
            uses="dtolnay/rust-toolchain@stable",
            with_={"targets": "${{ matrix.target }}"},
        ),
        Step(name="Setup Cache", uses="Swatinem/rust-cache@v2"),
        Step(name="Create Dist Directory", run="mkdir -p dist"),
        Step(
            name="Build Library",
            run="cargo build --verbose --locked --release --target ${{ matrix.target }}",
        ),
        Step(name="Prepare Release Binary", run=_PREPARE_RELEASE_SCRIPT, shell="bash"),
        Step(
            name="Upload Artifact",
            uses="actions/upload-artifact@v4",
            with_={
                "name": f"{project_name}-${{{{ matrix.name }}}}-library",
                "path": "dist/",
                "retention-days": "30",
            },
        ),
    ]

    job = BuildJob(
        condition=SKIP_CI_CONDITION,
        runs_on="${{ matrix.runner }}",
        strategy=Strategy(matrix=Matrix(include=list(PLATFORMS))),
        steps=steps,
    )

    return WorkflowModel(
        name="Build",
        trigger=Trigger(
            push=PushTrigger(
                branches=["main"],
                paths=["src/**", "Cargo.toml", workflow_path],
            )
        ),
        env={"PROJECT_NAME": project_name},
        jobs=Jobs(build=job),
    )


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


class _WorkflowDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_WorkflowDumper.add_representer(str, _represent_str)

# Applied once, in order, to the serialiser's own output.
_UNQUOTE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^'on':", re.MULTILINE), "on:"),
    (re.compile(r"'\$\{\{"), "${{"),
    (re.compile(r"\}\}'"), "}}"),
    (re.compile(r": '30'$", re.MULTILINE), ": 30"),
)


def _unquote(text: str) -> str:
    for pattern, replacement in _UNQUOTE_RULES:
        text = pattern.sub(replacement, text)
    return text


def serialize(model: WorkflowModel) -> str:
    """Render *model* as workflow YAML."""
    text = yaml.dump(
        model.to_document(),
        Dumper=_WorkflowDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    )
    return _unquote(text)


def write_workflow(
    project_root: str | Path,
    project_name: str,
    rel_path: str = DEFAULT_WORKFLOW_PATH,
) -> Path:
    """Generate the workflow for *project_name* under *project_root*.

    Raises:
        ScaffoldIOError: If the project root does not exist or the file
            cannot be written.
    """
    root = Path(project_root)
    if not root.is_dir():
        raise ScaffoldIOError(
            "project directory does not exist; cannot generate the workflow file",
            operation="write workflow",
            target=str(root),
        )

    target = root / rel_path
    content = serialize(build_model(project_name, workflow_path=rel_path))
    try:
        atomic_write_text(target, content)
    except OSError as exc:
        raise ScaffoldIOError(str(exc), operation="write workflow", target=str(target)) from exc
    print_success("Build workflow generated successfully!")
    return target
