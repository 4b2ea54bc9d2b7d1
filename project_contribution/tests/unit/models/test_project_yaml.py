import pytest

from project_contribution.models.dtos import ContributionResponse, ErrorResponse
from project_contribution.models.project_yaml import (
    dump_project_yaml,
    logo_file_path,
    parse_project_yaml,
    project_file_path,
    validate_project_record,
)
from project_contribution.models.records import (
    CanonicalRecord,
    ChangeRequestRef,
    DraftRecord,
    SubmissionResult,
)


class TestPaths:

    def test_project_file_path_is_sharded_by_first_character(self):
        assert project_file_path("acme") == "data/projects/a/acme.yaml"
        assert project_file_path("0xsplits") == "data/projects/0/0xsplits.yaml"

    @pytest.mark.parametrize("name", ["", "Acme", "../x", "a/b", None])
    def test_project_file_path_rejects_invalid_names(self, name):
        with pytest.raises(ValueError):
            project_file_path(name)

    @pytest.mark.parametrize("file_name, mime_type, expected", [
        (None, "image/png", "logos/acme.png"),
        ("acme.svg", "image/jpeg", "logos/acme.jpg"),
        ("acme.JPEG", None, "logos/acme.jpg"),
        ("acme.webp", "application/octet-stream", "logos/acme.webp"),
        ("acme", None, "logos/acme.png"),
        (None, None, "logos/acme.png"),
    ])
    def test_logo_file_path(self, file_name, mime_type, expected):
        assert logo_file_path("acme", file_name, mime_type) == expected


class TestYaml:

    def test_dump_keeps_canonical_order(self):
        record = CanonicalRecord.from_mapping({
            "github": [{"url": "https://github.com/acme"}],
            "display_name": "Acme",
            "name": "acme",
            "version": 7,
            "defillama": ["acme"],
        })

        text = dump_project_yaml(record)

        assert text.splitlines()[:3] == ["version: 7", "name: acme", "display_name: Acme"]
        assert text.index("github:") < text.index("defillama:")

    def test_parse_round_trip_keeps_extensions(self):
        text = "version: 7\nname: acme\ndisplay_name: Acmé\nblockchain:\n- address: '0xabc'\n  networks: [mainnet]\n"

        record = parse_project_yaml(text)

        assert record.display_name == "Acmé"
        assert record.extensions == {"blockchain": [{"address": "0xabc", "networks": ["mainnet"]}]}
        assert parse_project_yaml(dump_project_yaml(record)) == record

    @pytest.mark.parametrize("text", ["", "- a\n- b\n", "name: [unclosed"])
    def test_parse_rejects_non_mapping_documents(self, text):
        with pytest.raises(ValueError):
            parse_project_yaml(text)


class TestValidation:

    def test_valid_record(self):
        record = CanonicalRecord.from_mapping({
            "version": 7,
            "name": "acme",
            "display_name": "Acme",
            "websites": [{"url": "https://acme.example"}],
            "social": {"twitter": [{"url": "https://x.com/acme"}]},
        })

        assert validate_project_record(record) == []

    def test_reports_every_problem(self):
        record = CanonicalRecord.from_mapping({
            "version": True,
            "name": "Acme",
            "display_name": " ",
            "description": 5,
            "github": [{"href": "x"}],
            "social": {"twitter": "https://x.com/acme"},
        })

        errors = validate_project_record(record)

        assert errors == [
            "version must be an integer",
            "name must be a lowercase slug (letters, digits, '.', '-', '_')",
            "display_name must be a non-empty string",
            "description must be a string",
            "github[0] must be a mapping with a non-empty 'url'",
            "social.twitter must be a list",
        ]


class TestRecords:

    def test_draft_mapping_omits_unset_fields(self):
        draft = DraftRecord(name="acme", social={})

        assert draft.to_mapping() == {"name": "acme", "social": {}}


class TestResponses:

    def test_response_uses_camel_case_aliases(self):
        result = SubmissionResult(
            record=ChangeRequestRef("data/projects/a/acme.yaml", "b1", "https://github.com/o/r/pull/1"),
        )

        payload = ContributionResponse.from_result(result).model_dump(by_alias=True)

        assert payload == {
            "yamlPullRequestUrl": "https://github.com/o/r/pull/1",
            "logoPullRequestUrl": None,
            "yamlFilePath": "data/projects/a/acme.yaml",
            "logoFilePath": None,
            "yamlBranchName": "b1",
            "logoBranchName": None,
        }

    def test_plain_error_has_only_message(self):
        assert ErrorResponse(error="nope").model_dump(by_alias=True, exclude_none=True) == {"error": "nope"}
