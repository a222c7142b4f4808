import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from errors import RemoteServiceError
from models import Err, Ok, SetSiteReadOnlyResponse
from routers.main import app
from settings import settings

KEY = {"x-functions-key": "test-function-key"}
BODY = {"SiteURL": "https://contoso.sharepoint.com/sites/proj", "Owner": "boss@contoso.com"}


class TestSetSiteReadOnlyRoute(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_success(self, mock_run):
        mock_run.return_value = Ok(SetSiteReadOnlyResponse(SetReadOnly=True))
        response = self.client.post("/api/SetSiteReadOnly", json=BODY, headers=KEY)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"SetReadOnly": True})
        req = mock_run.await_args.args[0]
        self.assertEqual((req.SiteURL, req.Owner), (BODY["SiteURL"], BODY["Owner"]))

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_failure_is_503_with_message(self, mock_run):
        mock_run.return_value = Err(RemoteServiceError("Access denied."))
        response = self.client.post("/api/SetSiteReadOnly", json=BODY, headers=KEY)
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json(), "Access denied.")

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_code_query_parameter(self, mock_run):
        mock_run.return_value = Ok(SetSiteReadOnlyResponse(SetReadOnly=True))
        response = self.client.post("/api/SetSiteReadOnly?code=test-function-key", json=BODY)
        self.assertEqual(response.status_code, 200)

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_alias_route(self, mock_run):
        mock_run.return_value = Ok(SetSiteReadOnlyResponse(SetReadOnly=True))
        response = self.client.post("/api/sharepoint/site/readonly", json=BODY, headers=KEY)
        self.assertEqual(response.status_code, 200)

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_missing_function_key(self, mock_run):
        response = self.client.post("/api/SetSiteReadOnly", json=BODY)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Missing or invalid function key.")
        mock_run.assert_not_awaited()

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_wrong_function_key(self, mock_run):
        response = self.client.post("/api/SetSiteReadOnly", json=BODY, headers={"x-functions-key": "nope"})
        self.assertEqual(response.status_code, 401)
        mock_run.assert_not_awaited()

    @patch("routers.sites.readonly.set_site_read_only", new_callable=AsyncMock)
    def test_refused_when_no_function_key_configured(self, mock_run):
        with patch.object(settings, "function_key", None):
            response = self.client.post("/api/SetSiteReadOnly", json=BODY, headers=KEY)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Function key is not configured on the server.")
        mock_run.assert_not_awaited()

    @patch("services.readonly.connect_to_site")
    def test_missing_owner_is_503(self, mock_connect):
        response = self.client.post("/api/SetSiteReadOnly", json={"SiteURL": BODY["SiteURL"]}, headers=KEY)
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json(), "Parameter cannot be null (Parameter 'Owner')")
        mock_connect.assert_not_called()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
