"""Integration tests for the complete fuusorpy system."""

import pandas as pd
import pytest

import fuusorpy
from fuusorpy.exceptions import HttpError, ValidationError
from conftest import TOKEN_URL, create_mock_response, token_response

pytestmark = pytest.mark.integration


def route(responses):
    """Build a side effect answering by URL suffix and counting token requests."""
    calls = {"token": 0}

    def side_effect(method, url, **kwargs):
        if url == TOKEN_URL:
            calls["token"] += 1
            scope = kwargs["data"]["scope"]
            return token_response(f"{scope}-token-{calls['token']}", expires_in=600)
        for suffix, response in responses.items():
            if url.endswith(suffix):
                return response
        return create_mock_response("unknown endpoint", status_code=404, reason="Not Found")

    return side_effect, calls


class TestDatasetWorkflow:

    def test_build_validate_and_save(self, client, mock_request):
        side_effect, calls = route({"/dataset": create_mock_response(None)})
        mock_request.side_effect = side_effect

        dataset = client.create_dataset(
            group_id="g1", dataset_id="sales", dataset_name="Sales", dataset_type="Invoices",
            begin="2024-01-01", end="2024-12-31", primary_date="date",
            periods=[{"begin": "2023-07-01", "end": "2024-06-30"}],
        )
        dataset.define_field("dimension", "region", "Region")
        dataset.push_dimension_field_dimension("region", {"id": "n", "name": "North"})
        dataset.define_dimension_hierarchy("areas", "Areas", "region")
        dataset.push_dimension_hierarchy_item("areas", {"id": "all", "name": "All", "items": ["n"]})
        dataset.define_field("date", "date", "Date")
        dataset.define_field("value", "amount", "Amount")
        dataset.add_rows_from_dataframe(pd.DataFrame({
            "region": ["n", "n"],
            "date": ["2024-01-01", "2024-02-01"],
            "amount": [10.0, None],
        }))

        dataset.save()

        assert calls["token"] == 1
        upload = mock_request.call_args
        assert upload.args == ("POST", "https://api.fuusor.fi/api/v1/dataset")
        assert upload.kwargs["headers"]["Authorization"] == "Bearer fileupload-token-1"

        payload = upload.kwargs["json"]
        assert payload["datasetid"] == "sales"
        assert payload["periods"] == [{"begin": "2023-07-01", "end": "2024-06-30"}]
        assert payload["dimensionhierarchies"][0]["items"] == [
            {"id": "all", "name": "All", "items": ["n"]}
        ]
        assert payload["rows"] == [
            {"region": "n", "date": "2024-01-01", "amount": 10.0},
            {"region": "n", "date": "2024-02-01", "amount": None},
        ]

    def test_invalid_dataset_makes_no_requests(self, client, mock_request):
        dataset = client.create_dataset(
            {"groupId": "g1", "datasetId": "d1", "datasetName": "N", "datasetType": "Invoices"}
        )
        dataset.define_value_field("amount", "Amount")
        dataset.add_row({"amount": "x"})

        with pytest.raises(ValidationError, match="amount"):
            dataset.save()

        mock_request.assert_not_called()

    def test_legacy_upload_flow(self, client, mock_request):
        side_effect, calls = route({"/uploadfile": create_mock_response(None)})
        mock_request.side_effect = side_effect

        dataset = client.create_dataset(
            {"groupId": "g1", "datasetId": "d1", "datasetName": "N", "datasetType": "Invoices"}
        )
        token = client.fetch_access_token_for_dataset_upload()
        client.save_dataset(token, dataset.to_payload())

        assert token == "fileupload-token-1"
        assert mock_request.call_args.args[1].endswith("/uploadfile")


class TestUserManagementWorkflow:

    def test_users_and_groups_share_token(self, client, mock_request, fake_clock,
                                          sample_users_response):
        side_effect, calls = route({
            "/User/Get": create_mock_response(sample_users_response),
            "/User/Create": create_mock_response("https://app.fuusor.fi/activate/1"),
            "/UserGroup/AddUsers": create_mock_response(None),
        })
        mock_request.side_effect = side_effect

        users = client.users.get_all()
        created = client.users.create({"userName": "new@example.com",
                                       "authenticationType": "activationlink"})
        client.user_groups.add_users("sales", ["new@example.com"])

        assert [u.user_name for u in users] == ["anna@example.com", "bob@example.com"]
        assert created.activation_link == "https://app.fuusor.fi/activate/1"
        assert calls["token"] == 1

        fake_clock.advance(601)
        client.users.get_all()
        assert calls["token"] == 2
        assert mock_request.call_args.kwargs["headers"]["Authorization"] == "Bearer users-token-2"

    def test_api_error_surfaces(self, client, mock_request):
        side_effect, calls = route({
            "/User/Delete": create_mock_response("User not found", status_code=404,
                                                 reason="Not Found"),
        })
        mock_request.side_effect = side_effect

        with pytest.raises(HttpError) as exc_info:
            client.users.delete("ghost@example.com")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "User not found"
