import pytest

from portal.services.storage import FileStorage


class _Client:
    def __init__(self):
        self.removed = []

    def remove_object(self, bucket, key):
        self.removed.append((bucket, key))


def test_url_for_joins_base_and_key():
    storage = FileStorage(_Client(), "uploads", "https://cdn.test/uploads/")
    assert storage.url_for("submissions/a.png") == "https://cdn.test/uploads/submissions/a.png"


@pytest.mark.asyncio
async def test_remove_deletes_from_the_bucket():
    client = _Client()
    await FileStorage(client, "uploads", "https://cdn.test").remove("submissions/follow-win/x.png")
    assert client.removed == [("uploads", "submissions/follow-win/x.png")]
