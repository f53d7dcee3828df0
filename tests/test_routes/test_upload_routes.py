# tests/test_routes/test_upload_routes.py


async def test_profile_image_upload(client, buyer, auth_headers):
    response = await client.post(
        "/api/uploads/profile",
        files={"profileImage": ("yo.jpg", b"\xff\xd8 fake", "image/jpeg")},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["imageUrl"].startswith("/media/profiles/")
    assert data["user"]["profileImage"] == data["imageUrl"]


async def test_profile_image_rejects_pdf(client, buyer, auth_headers):
    response = await client.post(
        "/api/uploads/profile",
        files={"profileImage": ("yo.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400


async def test_certification_document_only(client, seller, auth_headers):
    response = await client.post(
        "/api/uploads/certifications",
        files={"certificationDocument": ("ica.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    assert response.json()["data"]["documentUrl"].startswith("/media/certifications/")
    assert "certification" not in response.json()["data"]


async def test_certification_document_creates_record(client, seller, auth_headers):
    response = await client.post(
        "/api/uploads/certifications",
        files={"certificationDocument": ("ica.pdf", b"%PDF-1.4", "application/pdf")},
        data={"certificationType": "ICA", "certificateNumber": "ICA-77"},
        headers=auth_headers(seller),
    )

    data = response.json()["data"]
    assert data["certification"]["certificationType"] == "ICA"
    assert data["certification"]["imageUrl"] == data["documentUrl"]
    assert data["certification"]["status"] == "PENDING"


async def test_upload_requires_auth(client):
    response = await client.post(
        "/api/uploads/profile",
        files={"profileImage": ("yo.jpg", b"\xff\xd8 fake", "image/jpeg")},
    )

    assert response.status_code == 401
