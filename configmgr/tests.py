from django.test import TestCase, override_settings

from configmgr.conf import get_int
from configmgr.models import SystemSetting


class GetIntTests(TestCase):
    def test_settings_value(self):
        self.assertEqual(get_int("CANCELLATION_NOTICE_HOURS"), 3)

    @override_settings(BOOKING_LEAD_MINUTES=45)
    def test_settings_override(self):
        self.assertEqual(get_int("BOOKING_LEAD_MINUTES"), 45)

    def test_row_wins_over_settings(self):
        SystemSetting.objects.create(key="CANCELLATION_NOTICE_HOURS", value="24")
        self.assertEqual(get_int("CANCELLATION_NOTICE_HOURS"), 24)

    def test_unparseable_row_falls_back(self):
        SystemSetting.objects.create(key="STRIKE_LIMIT", value="many")
        with self.assertLogs("configmgr.conf", level="WARNING"):
            self.assertEqual(get_int("STRIKE_LIMIT"), 3)

    def test_non_positive_row_falls_back(self):
        SystemSetting.objects.create(key="SLOT_GRANULARITY_MINUTES", value="0")
        with self.assertLogs("configmgr.conf", level="WARNING"):
            self.assertEqual(get_int("SLOT_GRANULARITY_MINUTES"), 30)
