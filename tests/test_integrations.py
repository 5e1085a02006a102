from unittest.mock import patch

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from integrations import firebase, mailer, media
from responses import ExternalServiceError


@pytest.mark.parametrize(
    "amount,expected",
    [(1500000, "Rp 1.500.000"), (0, "Rp 0"), (999, "Rp 999"), (25000.6, "Rp 25.001")],
)
def test_format_idr(amount, expected):
    assert mailer.format_idr(amount) == expected


def test_receipt_skipped_without_api_key():
    with patch("resend.Emails.send") as send:
        assert mailer.send_payment_receipt("a@b.c", "A", 1000, "ORDER-1") is None
    send.assert_not_called()


def test_receipt_sent_with_api_key(monkeypatch):
    monkeypatch.setattr(mailer, "RESEND_API_KEY", "re_test")
    with patch("resend.Emails.send", return_value={"id": "email-1"}) as send:
        assert mailer.send_payment_receipt("budi@example.com", "Budi", 1500000, "ORDER-ABC") == {"id": "email-1"}
    params = send.call_args.args[0]
    assert params["to"] == ["budi@example.com"]
    assert "ORDER-ABC" in params["subject"]
    assert "Rp 1.500.000" in params["html"]
    assert "ORDER-ABC" in params["html"]


def test_upload_image_options():
    res = {"secure_url": "https://cdn/x.png", "public_id": "freelancer-app/x", "format": "png", "width": 1, "height": 2}
    with patch("cloudinary.uploader.upload", return_value=res) as upload:
        assert media.upload_image("data:image/png;base64,AAAA") == {
            "url": "https://cdn/x.png",
            "public_id": "freelancer-app/x",
            "format": "png",
            "width": 1,
            "height": 2,
        }
    kwargs = upload.call_args.kwargs
    assert kwargs["folder"] == "freelancer-app"
    assert kwargs["use_filename"] and kwargs["unique_filename"] and kwargs["overwrite"]
    assert "public_id" not in kwargs


def test_upload_image_with_folder_and_public_id():
    with patch("cloudinary.uploader.upload", return_value={}) as upload:
        media.upload_image("https://example.com/a.png", folder="/projects/", public_id="cover")
    assert upload.call_args.kwargs["folder"] == "freelancer-app/projects"
    assert upload.call_args.kwargs["public_id"] == "cover"


def test_delete_image():
    with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}):
        assert media.delete_image("freelancer-app/x") is True
    with patch("cloudinary.uploader.destroy", return_value={"result": "not found"}):
        assert media.delete_image("freelancer-app/x") is False
    with patch("cloudinary.uploader.destroy", side_effect=CloudinaryError("boom")):
        with pytest.raises(ExternalServiceError):
            media.delete_image("freelancer-app/x")


def test_firebase_initializes_from_credentials(monkeypatch):
    monkeypatch.setattr(firebase, "FIREBASE_CREDENTIALS", "/secrets/firebase.json")
    with patch("integrations.firebase.firebase_admin.get_app", side_effect=ValueError("no app")), patch(
        "integrations.firebase.credentials.Certificate"
    ) as certificate, patch("integrations.firebase.firebase_admin.initialize_app", return_value="app") as init, patch(
        "integrations.firebase.auth.create_custom_token", return_value=b"tok"
    ) as create:
        assert firebase.create_custom_token("uid-1", {"role": "client"}) == "tok"
    certificate.assert_called_once_with("/secrets/firebase.json")
    init.assert_called_once()
    assert create.call_args.kwargs["app"] == "app"
