# tests/deps/test_manifest.py
from __future__ import annotations

from pathlib import Path

import pytest

from hostdeps.core.errors import DepsManifestStateError, RidFallbackGraphError
from hostdeps.core.version import FileVersion
from hostdeps.deps import (
    AssetCategory,
    DepsLoadState,
    DepsManifest,
    RidFallbackGraph,
    RidResolutionOptions,
    createForFrameworkDependent,
    createForSelfContained,
)
from hostdeps.deps.manifest import readRuntimeTarget
from hostdeps.host.platform import HostPlatform


TARGET = ".NETCoreApp,Version=v8.0"


def _appManifest() -> dict:
    return {
        "runtimeTarget": {"name": TARGET, "signature": "abc123"},
        "targets": {
            TARGET: {
                "App/1.0.0": {
                    "dependencies": {"Json": "13.0.1", "Native.Lib": "2.0.0"},
                    "runtime": {"App.dll": {}},
                },
                "Json/13.0.1": {
                    "runtime": {
                        "lib/net8.0/Json.dll": {"assemblyVersion": "13.0.0.0", "fileVersion": "13.0.1.25517"},
                    },
                    "resources": {"lib/net8.0/de/Json.resources.dll": {"locale": "de"}},
                },
                "Native.Lib/2.0.0": {
                    "runtime": {"lib/netstandard2.0/Native.Lib.dll": {}},
                    "runtimeTargets": {
                        "runtimes/linux-x64/native/libnative.so": {"rid": "linux-x64", "assetType": "native"},
                        "runtimes/win-x64/native/native.dll": {"rid": "win-x64", "assetType": "native"},
                        "runtimes/unix/lib/netstandard2.0/Native.Lib.dll": {"rid": "unix", "assetType": "runtime"},
                    },
                },
            },
        },
        "libraries": {
            "App/1.0.0": {"type": "project", "serviceable": False, "sha512": ""},
            "Json/13.0.1": {
                "type": "package",
                "serviceable": True,
                "sha512": "sha512-json",
                "path": "json/13.0.1",
                "hashPath": "json.13.0.1.nupkg.sha512",
            },
            "Native.Lib/2.0.0": {"type": "Package", "serviceable": True, "sha512": "sha512-native"},
        },
        "runtimes": {
            "linux-x64": ["linux", "unix-x64", "unix", "any", "base"],
            "ubuntu.22.04-x64": ["ubuntu-x64", "linux-x64", "linux", "unix", "any"],
        },
    }


def _relativePaths(deps: DepsManifest, category: AssetCategory) -> list[str]:
    return [entry.asset.relativePath for entry in deps.getEntries(category)]


# ----------------------------------------
# Load outcomes
# ----------------------------------------

def test_missing_file_is_valid_and_empty(tmp_path, linux_host):
    deps = createForFrameworkDependent(tmp_path / "missing.deps.json", RidResolutionOptions(), hostPlatform=linux_host)
    assert deps.state is DepsLoadState.VALID_EMPTY
    assert deps.isValid
    assert not deps.fileExists
    assert deps.entries == ()
    assert not deps.hasPackage("Json", "13.0.1")


def test_malformed_json_is_invalid(write_deps):
    path = write_deps('{"targets": {')
    deps = createForSelfContained(path, RidResolutionOptions())
    assert deps.state is DepsLoadState.INVALID
    assert not deps.isValid
    assert deps.fileExists
    for category in AssetCategory:
        assert deps.getEntries(category) == ()


def test_root_must_be_object(write_deps):
    deps = createForSelfContained(write_deps("[1, 2, 3]"), RidResolutionOptions())
    assert deps.state is DepsLoadState.INVALID


def test_deeply_nested_document_is_invalid(write_deps):
    depth = 200_000
    path = write_deps('{"x":' + "[" * depth + "]" * depth + "}")
    deps = createForSelfContained(path, RidResolutionOptions())
    assert deps.state is DepsLoadState.INVALID
    assert deps.entries == ()


@pytest.mark.parametrize(
    "text",
    [
        # Unquoted keys and single-quoted strings
        "{runtimeTarget: 't', targets: {t: {'A/1': {runtime: {'A.dll': {}}}}}, libraries: {'A/1': {type: 'project'}}}",
        '{"runtimeTarget": "t", "size": 0x10}',
        '{"runtimeTarget": "t", "limit": Infinity}',
        '{"runtimeTarget": "t", "limit": NaN}',
        '{"runtimeTarget": "t", "targets": {},,}',
        '{"runtimeTarget": "t" /* unterminated',
    ],
)
def test_only_comments_and_trailing_commas_are_tolerated(write_deps, text):
    deps = createForSelfContained(write_deps(text), RidResolutionOptions())
    assert deps.state is DepsLoadState.INVALID
    assert not deps.isValid


def test_lenient_document_with_comments_and_trailing_commas(write_deps):
    text = """
    // generated
    {
      "runtimeTarget": {"name": "t"},
      "targets": {"t": {"A/1.0": {"runtime": {"A.dll": {},},},},},
      "libraries": {"A/1.0": {"type": "project",},},
    }
    """
    deps = createForSelfContained(write_deps(text), RidResolutionOptions())
    assert deps.state is DepsLoadState.VALID
    assert _relativePaths(deps, AssetCategory.RUNTIME) == ["A.dll"]


def test_comment_markers_inside_strings_are_kept(write_deps):
    text = """
    {
      /* block */ "runtimeTarget": "t",
      "targets": {"t": {"A/1.0": {"runtime": {"lib//A.dll": {}, "lib/*B*/.dll": {},}}}},
      "libraries": {"A/1.0": {"type": "project", "sha512": "x,]"}}
    }
    """
    deps = createForSelfContained(write_deps(text), RidResolutionOptions())
    assert deps.state is DepsLoadState.VALID
    assert _relativePaths(deps, AssetCategory.RUNTIME) == ["lib//A.dll", "lib/*B*/.dll"]
    assert deps.entries[0].libraryHash == "x,]"


def test_oversized_version_component_is_zero(write_deps):
    manifest = {
        "runtimeTarget": "t",
        "targets": {"t": {"A/1.0": {"runtime": {"A.dll": {"assemblyVersion": "1." + "9" * 5000}}}}},
        "libraries": {"A/1.0": {"type": "project"}},
    }
    deps = createForSelfContained(write_deps(manifest), RidResolutionOptions())
    assert deps.state is DepsLoadState.VALID
    assert deps.entries[0].asset.assemblyVersion == FileVersion()


def test_utf8_bom_is_accepted(tmp_path):
    path = tmp_path / "bom.deps.json"
    path.write_bytes(b"\xef\xbb\xbf" + b'{"runtimeTarget": "t", "targets": {}, "libraries": {}}')
    deps = createForSelfContained(path, RidResolutionOptions())
    assert deps.state is DepsLoadState.VALID
    assert deps.runtimeTarget == "t"


def test_load_twice_raises(write_deps, linux_host):
    deps = DepsManifest(write_deps(_appManifest()), hostPlatform=linux_host)
    deps.load(False)
    with pytest.raises(DepsManifestStateError):
        deps.load(False)


# ----------------------------------------
# Self-contained mode
# ----------------------------------------

def test_selfContained_uses_generic_assets_only(write_deps):
    deps = createForSelfContained(write_deps(_appManifest()), RidResolutionOptions())

    assert deps.state is DepsLoadState.VALID
    assert not deps.isFrameworkDependent
    assert deps.runtimeTarget == TARGET
    assert deps.runtimeTargetSignature == "abc123"
    assert _relativePaths(deps, AssetCategory.RUNTIME) == [
        "App.dll",
        "lib/net8.0/Json.dll",
        "lib/netstandard2.0/Native.Lib.dll",
    ]
    assert _relativePaths(deps, AssetCategory.RESOURCES) == ["lib/net8.0/de/Json.resources.dll"]
    assert deps.getEntries(AssetCategory.NATIVE) == ()
    assert not any(entry.isRidSpecific for entry in deps.entries)

    json = deps.getEntries(AssetCategory.RUNTIME)[1]
    assert json.libraryName == "Json"
    assert json.libraryVersion == "13.0.1"
    assert json.libraryType == "package"
    assert json.isServiceable
    assert json.asset.name == "Json"
    assert json.asset.assemblyVersion == FileVersion(13, 0, 0, 0)
    assert json.asset.fileVersion == FileVersion(13, 0, 1, 25517)
    assert json.depsFile == "app.deps.json"


def test_selfContained_publishes_graph(write_deps):
    graph = RidFallbackGraph()
    options = RidResolutionOptions(useFallbackGraph=True, ridFallbackGraph=graph)

    createForSelfContained(write_deps(_appManifest()), options)

    assert graph.isPublished
    assert graph["linux-x64"] == ("linux", "unix-x64", "unix", "any", "base")
    assert set(graph) == {"linux-x64", "ubuntu.22.04-x64"}


def test_selfContained_rejects_published_graph(write_deps):
    options = RidResolutionOptions(useFallbackGraph=True, ridFallbackGraph=RidFallbackGraph({"any": []}))
    with pytest.raises(RidFallbackGraphError):
        createForSelfContained(write_deps(_appManifest()), options)


def test_selfContained_graph_mode_requires_graph(write_deps):
    with pytest.raises(RidFallbackGraphError):
        createForSelfContained(write_deps(_appManifest()), RidResolutionOptions(useFallbackGraph=True))


def test_selfContained_missing_file_leaves_graph_unpublished(tmp_path):
    graph = RidFallbackGraph()
    options = RidResolutionOptions(useFallbackGraph=True, ridFallbackGraph=graph)
    deps = createForSelfContained(tmp_path / "none.deps.json", options)
    assert deps.state is DepsLoadState.VALID_EMPTY
    assert not graph.isPublished


# ----------------------------------------
# Framework-dependent mode
# ----------------------------------------

def test_frameworkDependent_static_list(write_deps, linux_host):
    deps = createForFrameworkDependent(write_deps(_appManifest()), RidResolutionOptions(), hostPlatform=linux_host)

    assert deps.isFrameworkDependent
    assert deps.hostRid is None
    assert _relativePaths(deps, AssetCategory.RUNTIME) == [
        "App.dll",
        "lib/net8.0/Json.dll",
        "runtimes/unix/lib/netstandard2.0/Native.Lib.dll",
    ]
    assert _relativePaths(deps, AssetCategory.NATIVE) == ["runtimes/linux-x64/native/libnative.so"]
    native = deps.getEntries(AssetCategory.NATIVE)[0]
    assert native.isRidSpecific
    assert native.asset.name == "libnative"


def test_frameworkDependent_with_graph(write_deps, linux_host):
    graph = RidFallbackGraph({"ubuntu.22.04-x64": ["ubuntu-x64", "linux-x64", "linux", "unix", "any"]})
    options = RidResolutionOptions(useFallbackGraph=True, ridFallbackGraph=graph)

    deps = createForFrameworkDependent(write_deps(_appManifest()), options, hostPlatform=linux_host)

    assert deps.hostRid == "ubuntu.22.04-x64"
    assert _relativePaths(deps, AssetCategory.NATIVE) == ["runtimes/linux-x64/native/libnative.so"]
    assert "runtimes/unix/lib/netstandard2.0/Native.Lib.dll" in _relativePaths(deps, AssetCategory.RUNTIME)


def test_frameworkDependent_no_matching_rid_falls_back_to_generic(write_deps):
    osx = HostPlatform(osRidPlatform="osx.14", osFallbackRid="osx", arch="arm64", isWindows=False)
    manifest = _appManifest()
    # Only a Windows runtime asset: nothing matches on osx
    manifest["targets"][TARGET]["Native.Lib/2.0.0"]["runtimeTargets"] = {
        "runtimes/win/lib/Native.Lib.dll": {"rid": "win", "assetType": "runtime"},
    }

    deps = createForFrameworkDependent(write_deps(manifest), RidResolutionOptions(), hostPlatform=osx)
    assert "lib/netstandard2.0/Native.Lib.dll" in _relativePaths(deps, AssetCategory.RUNTIME)
    assert deps.getEntries(AssetCategory.NATIVE) == ()


def test_rid_override_from_env(write_deps):
    host = HostPlatform(osRidPlatform="ubuntu.22.04", osFallbackRid="linux", arch="x64", envRid="win-x64")
    deps = createForFrameworkDependent(write_deps(_appManifest()), RidResolutionOptions(), hostPlatform=host)
    assert _relativePaths(deps, AssetCategory.NATIVE) == ["runtimes/win-x64/native/native.dll"]


def test_loading_is_deterministic(write_deps, linux_host):
    path = write_deps(_appManifest())
    first = createForFrameworkDependent(path, RidResolutionOptions(), hostPlatform=linux_host)
    second = createForFrameworkDependent(path, RidResolutionOptions(), hostPlatform=linux_host)
    assert first.entries == second.entries


# ----------------------------------------
# Queries
# ----------------------------------------

def test_hasPackage(write_deps, linux_host):
    deps = createForFrameworkDependent(write_deps(_appManifest()), RidResolutionOptions(), hostPlatform=linux_host)
    assert deps.hasPackage("Json", "13.0.1")
    assert deps.hasPackage("Native.Lib", "2.0.0")
    assert not deps.hasPackage("Json", "12.0.0")
    assert not deps.hasPackage("Missing", "1.0")


def test_getDependencies(write_deps):
    deps = createForSelfContained(write_deps(_appManifest()), RidResolutionOptions())
    assert deps.getDependencies("App/1.0.0") == ("Json/13.0.1", "Native.Lib/2.0.0")
    assert deps.getDependencies("Json/13.0.1") == ()


def test_getAssetPaths(write_deps, tmp_path):
    deps = createForSelfContained(write_deps(_appManifest()), RidResolutionOptions())
    paths = list(deps.getAssetPaths(AssetCategory.RUNTIME, tmp_path / "probe"))
    assert paths == [
        tmp_path / "probe" / "App.dll",
        tmp_path / "probe" / Path("json/13.0.1") / "lib/net8.0/Json.dll",
        tmp_path / "probe" / "lib/netstandard2.0/Native.Lib.dll",
    ]


def test_postProcess_receives_document(write_deps):
    seen: list[dict] = []
    deps = DepsManifest(write_deps(_appManifest()))
    document = deps.load(False, postProcess=seen.append)
    assert seen == [document]
    assert deps.state is DepsLoadState.VALID


def test_missing_runtime_target_loads_nothing(write_deps, caplog):
    manifest = _appManifest()
    del manifest["runtimeTarget"]
    deps = createForSelfContained(write_deps(manifest), RidResolutionOptions())
    assert deps.state is DepsLoadState.VALID
    assert deps.entries == ()
    assert "declares no runtimeTarget" in caplog.text


def test_readRuntimeTarget_forms():
    assert readRuntimeTarget({"runtimeTarget": "t"}) == ("t", "")
    assert readRuntimeTarget({"runtimeTarget": {"name": "t", "signature": "s"}}) == ("t", "s")
    assert readRuntimeTarget({"runtimeTarget": {"signature": 1}}) == ("", "")
    assert readRuntimeTarget({}) == ("", "")
