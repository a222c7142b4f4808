import logging
import unittest

from logging_config import LOG_FORMAT, RequestContextFilter, request_id_var, site_url_var


def make_record():
    return logging.LogRecord("services.readonly", logging.INFO, __file__, 1, "Removing x from Owners", None, None)


class TestRequestContextFilter(unittest.TestCase):

    def test_stamps_request_id_and_site(self):
        record = make_record()
        request_token = request_id_var.set("req-1")
        site_token = site_url_var.set("https://contoso.sharepoint.com/sites/proj")
        try:
            self.assertTrue(RequestContextFilter().filter(record))
        finally:
            site_url_var.reset(site_token)
            request_id_var.reset(request_token)
        line = logging.Formatter(LOG_FORMAT).format(record)
        self.assertIn("[req-1] [https://contoso.sharepoint.com/sites/proj] - services.readonly - Removing x", line)

    def test_defaults_outside_a_request(self):
        record = make_record()
        RequestContextFilter().filter(record)
        self.assertEqual((record.request_id, record.site_url), ("-", "-"))


if __name__ == "__main__":
    unittest.main()
