import io
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from PIL import Image

from winepicker.core.config import settings
from winepicker.services.label_reader import (
    LabelReader,
    LabelReadResult,
    parse_label_response,
    resize_image,
)

LABEL_JSON = {
    "producer": "Domaine Georges Roumier",
    "wine_name": "Bonnes-Mares",
    "vintage": 2015,
    "appellation": "Bonnes-Mares Grand Cru",
    "classification": "Grand Cru",
    "confidence": 0.92,
    "raw_text": "BONNES-MARES GRAND CRU 2015 Domaine Georges Roumier",
}


def _png(size=(40, 60), mode="RGB"):
    output = io.BytesIO()
    Image.new(mode, size, color=0).save(output, format="png")
    return output.getvalue()


def _client_returning(text):
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)]
    )
    return client


class TestParseLabelResponse:
    def test_full_answer(self):
        result = parse_label_response(json.dumps(LABEL_JSON))

        assert result.producer == "Domaine Georges Roumier"
        assert result.vintage == 2015
        assert result.classification == "Grand Cru"
        assert result.confidence == pytest.approx(0.92)

    def test_vintage_as_text(self):
        result = parse_label_response(json.dumps({"vintage": "2019"}))
        assert result.vintage == 2019

    def test_nulls_stay_empty(self):
        result = parse_label_response(json.dumps({"producer": None, "vintage": "NV"}))
        assert result.producer is None
        assert result.vintage is None
        assert result.confidence == 0.0

    def test_not_json_keeps_the_raw_text(self):
        result = parse_label_response("I could not read this label.")
        assert result.producer is None
        assert result.raw_text == "I could not read this label."

    def test_json_that_is_not_an_object(self):
        assert parse_label_response("[1, 2]").producer is None


class TestResizeImage:
    def test_large_images_are_shrunk_to_jpeg(self):
        data, media_type = resize_image(_png(size=(3000, 2000)))

        assert media_type == "image/jpeg"
        with Image.open(io.BytesIO(data)) as img:
            assert max(img.size) <= 1568
            assert img.format == "JPEG"

    def test_transparent_images_are_flattened(self):
        data, _ = resize_image(_png(mode="RGBA"))
        with Image.open(io.BytesIO(data)) as img:
            assert img.mode == "RGB"


class TestLabelReader:
    def test_reads_a_label(self):
        client = _client_returning(json.dumps(LABEL_JSON))
        reader = LabelReader(client=client, api_key="test-key", model="vision-test")

        result = reader.read(_png(), "image/png")

        assert result.wine_name == "Bonnes-Mares"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "vision-test"
        content = kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/jpeg"
        assert content[1]["type"] == "text"

    def test_missing_api_key_returns_empty_result(self, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", None)

        result = LabelReader().read(_png())

        assert result == LabelReadResult()

    def test_unreadable_image_returns_empty_result(self):
        client = _client_returning("{}")
        reader = LabelReader(client=client, api_key="test-key")

        assert reader.read(b"not an image") == LabelReadResult()
        client.messages.create.assert_not_called()

    def test_api_errors_return_empty_result(self):
        client = MagicMock()
        client.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        reader = LabelReader(client=client, api_key="test-key")

        assert reader.read(_png()) == LabelReadResult()

    def test_unparsable_answer_keeps_raw_text(self):
        reader = LabelReader(client=_client_returning("Sorry, too blurry"), api_key="k")

        result = reader.read(_png())

        assert result.producer is None
        assert result.raw_text == "Sorry, too blurry"
