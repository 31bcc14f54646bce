"""Unit tests for graph/paging.py."""

from unittest.mock import MagicMock

import pytest

from onedrive_client.graph.client import GraphResponse
from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.paging import ListChildrenFetcher, PageFetcher


def _page(ids: list[str], next_link: str | None = None) -> MagicMock:
    body: dict[str, object] = {"value": [{"id": i} for i in ids]}
    if next_link is not None:
        body["@odata.nextLink"] = next_link
    response = MagicMock(spec=GraphResponse)
    response.json.return_value = body
    return response


class TestPageFetcher:
    def test_no_request_until_first_page(self) -> None:
        client = MagicMock()
        fetcher = ListChildrenFetcher(client, "/me/drive/root/children")

        assert fetcher.cursor == "/me/drive/root/children"
        assert fetcher.is_exhausted is False
        client.execute.assert_not_called()

    def test_follows_next_link_verbatim(self) -> None:
        client = MagicMock()
        next_link = "https://graph.microsoft.com/v1.0/me/drive/root/children?$skiptoken=p2"
        client.execute.side_effect = [_page(["a", "b"], next_link), _page(["c"])]
        fetcher = ListChildrenFetcher(client, "/me/drive/root/children?$top=2")

        first = fetcher.next_page()
        assert [i.id for i in first.items] == ["a", "b"]
        assert first.has_next is True
        assert fetcher.cursor == next_link

        second = fetcher.next_page()
        assert [i.id for i in second.items] == ["c"]
        assert fetcher.is_exhausted is True
        assert [c.args for c in client.execute.call_args_list] == [
            ("GET", "/me/drive/root/children?$top=2"),
            ("GET", next_link),
        ]

    def test_next_page_after_exhaustion_is_misuse(self) -> None:
        client = MagicMock()
        client.execute.return_value = _page([])
        fetcher = ListChildrenFetcher(client, "/children")
        fetcher.next_page()

        with pytest.raises(MisuseError):
            fetcher.next_page()

    def test_iteration_is_lazy(self) -> None:
        client = MagicMock()
        client.execute.side_effect = [_page(["a"], "next"), _page(["b"])]
        items = iter(PageFetcher(client, "/children"))

        assert next(items).id == "a"
        assert client.execute.call_count == 1
        assert next(items).id == "b"
        assert client.execute.call_count == 2

    def test_fetch_all(self) -> None:
        client = MagicMock()
        client.execute.side_effect = [_page(["a"], "next"), _page([], "next2"), _page(["b"])]

        items = PageFetcher(client, "/children").fetch_all()

        assert [i.id for i in items] == ["a", "b"]

    def test_response_without_value_is_protocol_error(self) -> None:
        client = MagicMock()
        response = MagicMock(spec=GraphResponse)
        response.json.return_value = {"id": "not-a-collection"}
        client.execute.return_value = response

        with pytest.raises(ProtocolError):
            PageFetcher(client, "/children").next_page()

    def test_body_that_is_not_json_is_protocol_error(self) -> None:
        client = MagicMock()
        client.execute.return_value = GraphResponse(status_code=200, body=b"not json")
        fetcher = ListChildrenFetcher(client, "/me/drive/root/children")

        with pytest.raises(ProtocolError):
            fetcher.next_page()
        assert fetcher.cursor == "/me/drive/root/children"
