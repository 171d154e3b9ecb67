import pytest

from ecs_rollout.aws.errors import ErrorCategory, InputValidationError
from ecs_rollout.images import (
    ImageVersion,
    apply_image_versions,
    image_matches,
    image_repository,
    parse_image_versions,
)


def containers(*images):
    return [{'name': f"c{i}", 'image': image} for i, image in enumerate(images)]


def test_parse_image_versions_keeps_input_order():
    versions = parse_image_versions("repo/a:2.0,repo/b:3.1")

    assert versions == [ImageVersion("repo/a", "2.0"), ImageVersion("repo/b", "3.1")]
    assert [str(v) for v in versions] == ["repo/a:2.0", "repo/b:3.1"]


@pytest.mark.parametrize("value", ["repo/a", "repo/a:1:2", ":1.0", "repo/a:", "repo/a:1.0,repo/b"])
def test_parse_image_versions_rejects_malformed_entries(value):
    with pytest.raises(InputValidationError) as exc_info:
        parse_image_versions(value)

    assert exc_info.value.category == ErrorCategory.INVALID_INPUT
    assert str(exc_info.value) == "exit: value of -v has to be like <image path>:<image version>"


def test_only_matching_container_is_rewritten():
    defs = containers("repo/a:1.0", "repo/b:1.0")

    changes = apply_image_versions(defs, parse_image_versions("repo/a:2.0"))

    assert [c['image'] for c in defs] == ["repo/a:2.0", "repo/b:1.0"]
    assert len(changes) == 1
    assert changes[0].container_name == "c0"
    assert changes[0].old_image == "repo/a:1.0"


def test_every_matching_container_is_rewritten():
    defs = containers("registry.example.com/repo/a:1.0", "repo/a:0.9", "repo/c:1.0")

    apply_image_versions(defs, parse_image_versions("repo/a:2.0"))

    assert [c['image'] for c in defs] == ["repo/a:2.0", "repo/a:2.0", "repo/c:1.0"]


def test_later_entry_wins_for_containers_matched_twice():
    defs = containers("repo/a:1.0", "repo/b:1.0")

    changes = apply_image_versions(defs, parse_image_versions("repo/a:2.0,repo/a:3.0"))

    assert defs[0]['image'] == "repo/a:3.0"
    assert [c.new_image for c in changes] == ["repo/a:2.0", "repo/a:3.0"]


def test_unmatched_entry_is_ignored():
    defs = containers("repo/a:1.0")

    changes = apply_image_versions(defs, parse_image_versions("other/img:2.0"))

    assert changes == []
    assert defs[0]['image'] == "repo/a:1.0"


def test_substring_match_also_hits_longer_names():
    defs = containers("repo/ab:1.0")

    apply_image_versions(defs, parse_image_versions("repo/a:2.0"))

    assert defs[0]['image'] == "repo/a:2.0"


def test_exact_match_compares_repository():
    defs = containers("repo/ab:1.0", "repo/a:1.0")

    apply_image_versions(defs, parse_image_versions("repo/a:2.0"), match_mode="exact")

    assert [c['image'] for c in defs] == ["repo/ab:1.0", "repo/a:2.0"]


@pytest.mark.parametrize("image,expected", [
    ("repo/a:1.0", "repo/a"),
    ("repo/a", "repo/a"),
    ("registry:5000/team/app:1.2", "registry:5000/team/app"),
    ("registry:5000/team/app", "registry:5000/team/app"),
    ("repo/a@sha256:abcd", "repo/a"),
])
def test_image_repository(image, expected):
    assert image_repository(image) == expected


def test_image_matches_defaults_to_substring():
    assert image_matches("123.dkr.ecr.us-east-1.amazonaws.com/bff:1", "bff")
    assert not image_matches("123.dkr.ecr.us-east-1.amazonaws.com/bff:1", "bff", match_mode="exact")
