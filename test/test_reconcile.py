from conftest import BUCKET, auth_headers, upload


def drift(client, user, bucket=BUCKET):
    return client.get("/admin/drift", headers=auth_headers(user), query_string={"bucketName": bucket})


def test_no_drift(client, seed):
    upload(client, seed.alice, name="a.txt")
    res = drift(client, seed.admin)
    assert res.status_code == 200
    assert res.get_json()["data"] == {"bucket": BUCKET, "missingObjects": [], "orphanObjects": []}


def test_reports_missing_and_orphan_objects(client, seed, s3_client):
    upload(client, seed.alice, name="a.txt")
    upload(client, seed.alice, name="b.txt")
    s3_client.delete_object(Bucket=BUCKET, Key="a.txt")
    s3_client.put_object(Bucket=BUCKET, Key="stray/c.txt", Body=b"x")

    data = drift(client, seed.admin).get_json()["data"]
    assert data["missingObjects"] == ["a.txt"]
    assert data["orphanObjects"] == ["stray/c.txt"]


def test_drift_is_admin_only(client, seed):
    res = drift(client, seed.alice)
    assert res.status_code == 403


def test_drift_requires_bucket_name(client, seed):
    res = client.get("/admin/drift", headers=auth_headers(seed.admin))
    assert res.status_code == 400


def test_drift_unknown_bucket(client, seed):
    res = drift(client, seed.admin, bucket="nope")
    assert res.status_code == 404
    assert res.get_json()["code"] == "BUCKET_NOT_FOUND"


def test_drift_uses_bucket_lookup(client, seed, monkeypatch):
    from filegate.services.bucket_service import BucketService

    looked_up = []
    original = BucketService.get_by_name

    def spy(session, name):
        looked_up.append(name)
        return original(session, name)

    monkeypatch.setattr(BucketService, "get_by_name", spy)
    assert drift(client, seed.admin).status_code == 200
    assert looked_up == [BUCKET]
