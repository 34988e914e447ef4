"""Tests for per-variant namespace relocation."""

from pathlib import Path

import pytest

from modfuser.errors import FusionError
from modfuser.models import RelocationRule, VariantSpec
from modfuser.variant_relocator import build_relocation_rules, find_bootstrap_directory, relocate_variant

CLASS_BYTES = b"\xca\xfe\xba\xbe\x00\x00\x00\x34"


def test_bootstrap_directory_from_directory_entry(tmp_path: Path, make_jar) -> None:
    """Verify a top-level directory entry carrying the marker is found."""
    jar = make_jar(
        tmp_path / "forge.jar",
        {
            "architectury_inject_example_common_1a2b/": b"",
            "architectury_inject_example_common_1a2b/PlatformMethods.class": CLASS_BYTES,
        },
    )
    assert find_bootstrap_directory(jar) == "architectury_inject_example_common_1a2b"


def test_bootstrap_directory_inferred_from_files(tmp_path: Path, make_jar) -> None:
    """Verify the marker directory is inferred from file entries when no directory entry exists."""
    jar = make_jar(tmp_path / "fabric.jar", {"architectury_inject_x/A.class": CLASS_BYTES})
    assert find_bootstrap_directory(jar) == "architectury_inject_x"


def test_bootstrap_directory_entries_take_priority(tmp_path: Path, make_jar) -> None:
    """Verify directory entries win over earlier file entries."""
    jar = make_jar(
        tmp_path / "quilt.jar",
        {
            "architectury_inject_from_file/A.class": CLASS_BYTES,
            "architectury_inject_from_dir/": b"",
        },
    )
    assert find_bootstrap_directory(jar) == "architectury_inject_from_dir"


def test_bootstrap_directory_absent(tmp_path: Path, make_jar) -> None:
    """Verify archives without injected code report nothing."""
    jar = make_jar(tmp_path / "plain.jar", {"com/example/A.class": CLASS_BYTES, "architectury.txt": "x"})
    assert find_bootstrap_directory(jar) is None


def test_build_relocation_rules_order() -> None:
    """Verify group rule first, overrides next, bootstrap last."""
    spec = VariantSpec(name="forge", relocations={"com.google.gson": "forge.com.google.gson"})
    rules = build_relocation_rules(spec, "com.example", "architectury_inject_x")
    assert rules == [
        RelocationRule("com.example", "forge.com.example"),
        RelocationRule("com.google.gson", "forge.com.google.gson"),
        RelocationRule("architectury_inject_x", "forge.architectury_inject_x"),
    ]


def test_relocate_variant_namespaces_group(tmp_path: Path, make_jar, read_jar, ctx) -> None:
    """Verify classes of the group land under the variant namespace."""
    source = make_jar(
        tmp_path / "in" / "fabric.jar",
        {
            "com/example/Common.class": CLASS_BYTES,
            "com/example/foo/Foo.class": CLASS_BYTES,
            "com/examplelib/Other.class": CLASS_BYTES,
            "architectury_inject_a/B.class": CLASS_BYTES,
            "assets/example/lang/en_us.json": "{}",
        },
    )
    spec = VariantSpec(name="fabric", input_archive=source)

    relocated, rules = relocate_variant(spec, ctx)

    assert relocated.input_archive == ctx.temp_root / "fabric-relocated.jar"
    assert spec.input_archive == source
    assert rules[-1] == RelocationRule("architectury_inject_a", "fabric.architectury_inject_a")
    assert set(read_jar(relocated.input_archive)) == {
        "fabric/com/example/Common.class",
        "fabric/com/example/foo/Foo.class",
        "com/examplelib/Other.class",
        "fabric/architectury_inject_a/B.class",
        "assets/example/lang/en_us.json",
    }
    assert read_jar(relocated.input_archive)["fabric/com/example/Common.class"] == CLASS_BYTES


def test_relocate_variant_is_repeatable(tmp_path: Path, make_jar, ctx) -> None:
    """Verify repeated relocation derives the same rules and leaves the overrides alone."""
    source = make_jar(tmp_path / "forge.jar", {"com/example/A.class": CLASS_BYTES})
    spec = VariantSpec(name="forge", input_archive=source, relocations={"org.lib": "forge.org.lib"})

    _, first = relocate_variant(spec, ctx)
    _, second = relocate_variant(spec, ctx)

    assert first == second
    assert spec.relocations == {"org.lib": "forge.org.lib"}


def test_relocate_variant_unreadable_archive(tmp_path: Path, ctx) -> None:
    """Verify a corrupt input aborts with a fusion error."""
    broken = tmp_path / "broken.jar"
    broken.write_bytes(b"this is not a zip archive")
    with pytest.raises(FusionError):
        relocate_variant(VariantSpec(name="forge", input_archive=broken), ctx)
