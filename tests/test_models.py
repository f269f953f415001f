import pytest

from genux_core.exceptions import ValidationError
from genux_core.models import Feature, FeatureIdGenerator, FeatureType, coerce_feature


@pytest.mark.parametrize("name,expected", [
    ("script", FeatureType.SCRIPT),
    ("JavaScript", FeatureType.SCRIPT),
    ("html", FeatureType.MARKUP),
    ("markup", FeatureType.MARKUP),
    ("css", FeatureType.STYLESHEET),
    (FeatureType.STYLESHEET, FeatureType.STYLESHEET),
])
def test_feature_type_parse(name, expected):
    assert FeatureType.parse(name) is expected


def test_feature_type_parse_rejects_unknown():
    with pytest.raises(ValidationError):
        FeatureType.parse("python")


def test_language_names():
    assert FeatureType.SCRIPT.language == "JavaScript"
    assert FeatureType.MARKUP.language == "HTML"
    assert FeatureType.STYLESHEET.language == "CSS"


def test_feature_record_shape():
    feature = Feature(id=1700000000000, prompt="Add footer", type=FeatureType.MARKUP, code="<footer></footer>")
    assert feature.to_dict() == {
        "id": 1700000000000,
        "prompt": "Add footer",
        "code": "<footer></footer>",
        "type": "markup",
    }
    assert Feature.from_dict(feature.to_dict()) == feature


def test_from_dict_coerces_string_id():
    feature = Feature.from_dict({"id": "42", "prompt": "p", "code": "c", "type": "css"})
    assert feature.id == 42
    assert feature.type is FeatureType.STYLESHEET


@pytest.mark.parametrize("record", [
    {"prompt": "p", "code": "c", "type": "script"},
    {"id": "abc", "prompt": "p", "code": "c", "type": "script"},
    {"id": 1, "prompt": "p", "code": "c", "type": "cobol"},
    ["not", "a", "mapping"],
])
def test_from_dict_rejects_invalid(record):
    with pytest.raises(ValidationError):
        Feature.from_dict(record)


def test_coerce_feature_passes_features_through():
    feature = Feature(id=1, prompt="p", type=FeatureType.SCRIPT, code="c")
    assert coerce_feature(feature) is feature
    assert coerce_feature(feature.to_dict()) == feature


def test_id_generator_never_repeats_within_same_millisecond():
    gen = FeatureIdGenerator(clock=lambda: 1000.0)
    first = gen.next_id()
    second = gen.next_id()
    assert first == 1000000
    assert second == 1000001


def test_id_generator_skips_existing_ids():
    gen = FeatureIdGenerator(clock=lambda: 1.0)
    assert gen.next_id([5000, 7000]) == 7001
