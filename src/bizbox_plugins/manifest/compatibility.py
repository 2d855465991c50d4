"""Dependency compatibility checking.

check_compatibility() answers "can this plugin's dependencies be satisfied
by what is available, and are they free of cycles?" as data. It never
raises; the registry decides whether error-level issues block
initialization (see CompatibilityPolicy).
"""

from collections.abc import Mapping

from bizbox_plugins.types import (
    CompatibilityIssue,
    CompatibilityResult,
    IssueType,
    VersionMatching,
)

from .models import PluginManifest
from .versioning import version_satisfies


def check_compatibility(
    manifest: PluginManifest,
    available: Mapping[str, PluginManifest],
    version_matching: VersionMatching = VersionMatching.EXACT,
) -> CompatibilityResult:
    """Check a manifest's dependencies against the available plugins.

    Args:
        manifest: Manifest to check
        available: Known manifests by plugin id (may include manifest itself)
        version_matching: How required and available versions are compared

    Returns:
        CompatibilityResult; compatible iff no issue is an error
    """
    issues: list[CompatibilityIssue] = []

    for dep_id, required in manifest.dependencies.items():
        dep = available.get(dep_id)
        if dep is None:
            issues.append(
                CompatibilityIssue(
                    type=IssueType.ERROR,
                    message=f"Required dependency '{dep_id}' is not available",
                    dependency=dep_id,
                    expected_version=required,
                )
            )
            continue

        if not version_satisfies(dep.version, required, version_matching):
            issues.append(
                CompatibilityIssue(
                    type=IssueType.WARNING,
                    message=f"Version mismatch for dependency '{dep_id}'",
                    dependency=dep_id,
                    expected_version=required,
                    actual_version=dep.version,
                )
            )

    for dep_id, required in manifest.peer_dependencies.items():
        dep = available.get(dep_id)
        if dep is None:
            issues.append(
                CompatibilityIssue(
                    type=IssueType.WARNING,
                    message=f"Peer dependency '{dep_id}' is not available",
                    dependency=dep_id,
                    expected_version=required,
                )
            )
            continue

        if not version_satisfies(dep.version, required, version_matching):
            issues.append(
                CompatibilityIssue(
                    type=IssueType.WARNING,
                    message=f"Version mismatch for peer dependency '{dep_id}'",
                    dependency=dep_id,
                    expected_version=required,
                    actual_version=dep.version,
                )
            )

    # The manifest may not be registered yet; cycles back to it still count
    graph = {**available, manifest.id: manifest}
    cycle = detect_circular_dependencies(manifest, graph)
    if cycle:
        issues.append(
            CompatibilityIssue(
                type=IssueType.ERROR,
                message=f"Circular dependency detected: {format_cycle(cycle)}",
            )
        )

    return CompatibilityResult(issues=issues)


def detect_circular_dependencies(
    manifest: PluginManifest,
    available: Mapping[str, PluginManifest],
    path: tuple[str, ...] = (),
) -> list[str]:
    """Find the first dependency cycle reachable from manifest.

    Walks hard dependencies depth-first in declaration order. Each branch
    carries its own path tuple, so a diamond (A -> B -> D, A -> C -> D)
    is not mistaken for a cycle. Peer dependencies are not followed.

    Args:
        manifest: Manifest to start from
        available: Known manifests by plugin id
        path: Plugin ids already on the current branch

    Returns:
        The cycle from the first occurrence of the repeated id through its
        repeat, e.g. ["a", "b", "a"]; empty if there is none
    """
    if manifest.id in path:
        start = path.index(manifest.id)
        return [*path[start:], manifest.id]

    branch = (*path, manifest.id)
    for dep_id in manifest.dependencies:
        dep = available.get(dep_id)
        if dep is None:
            continue
        cycle = detect_circular_dependencies(dep, available, branch)
        if cycle:
            return cycle

    return []


def format_cycle(cycle: list[str]) -> str:
    """Render a cycle as 'a -> b -> a'."""
    return " -> ".join(cycle)
