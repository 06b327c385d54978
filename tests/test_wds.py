import pytest

from cansim.errors import DownloadError
from cansim.wds import get_cansim_changed_tables, get_cansim_cube_metadata, get_cansim_table_url


class FakeResponse:
    def __init__(self, payload, status_code=200, url="https://example.test"):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = str(payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def test_cube_metadata_keeps_successes_and_flattens_lists():
    session = FakeSession(
        FakeResponse(
            [
                {
                    "status": "SUCCESS",
                    "object": {
                        "productId": "14100287",
                        "cubeTitleEn": "Labour force characteristics",
                        "subjectCode": ["1410", "14"],
                        "surveyCode": ["3701"],
                    },
                },
                {"status": "FAILED", "object": "Product 99999999 not found"},
            ]
        )
    )
    df = get_cansim_cube_metadata(["14-10-0287-01", "99-99-9999"], session=session)

    assert session.calls[0]["method"] == "POST"
    assert session.calls[0]["json"] == [{"productId": 14100287}, {"productId": 99999999}]
    assert len(df) == 1
    assert df.loc[0, "subjectCode"] == "1410,14"
    assert df.loc[0, "cubeTitleEn"] == "Labour force characteristics"
    assert df.loc[0, "cansimId"] is None


def test_table_url():
    session = FakeSession(FakeResponse({"status": "SUCCESS", "object": "https://x/14100287-eng.zip"}))
    assert get_cansim_table_url("14-10-0287", "english", session=session) == "https://x/14100287-eng.zip"
    assert session.calls[0]["url"].endswith("/getFullTableDownloadCSV/14100287/en")


def test_changed_tables():
    session = FakeSession(
        FakeResponse({"status": "SUCCESS", "object": [{"productId": 14100287, "releaseTime": "2024-01-05T08:30"}]})
    )
    df = get_cansim_changed_tables("2024-01-01", session=session)
    assert df.to_dict("records") == [{"productId": 14100287, "releaseTime": "2024-01-05T08:30"}]
    assert session.calls[0]["url"].endswith("/getChangedCubeList/2024-01-01")


def test_non_200_raises_download_error():
    session = FakeSession(FakeResponse({"message": "not found"}, status_code=404))
    with pytest.raises(DownloadError) as exc:
        get_cansim_changed_tables("2024-01-01", session=session)
    assert exc.value.status_code == 404
