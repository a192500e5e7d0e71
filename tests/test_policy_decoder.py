from __future__ import annotations

import json
import os
import runpy
from unittest.mock import patch

from django.test import Client, SimpleTestCase, override_settings
from django.urls import reverse

import policy_decoder_tool.settings as project_settings
from policy_decoder.exceptions import InvalidTargetError, SummarizationError
from policy_decoder.forms import AnalyzeForm
from policy_decoder.services import DecodeOutcome
from policy_decoder.summarizer import fallback_summary
from policy_decoder.types import PolicySummary, ResolutionResult

TEST_STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

SUMMARY = PolicySummary(
    brand='Comet',
    category='Fashion',
    return_window='15 days',
    refund_type='Refund to source',
    return_method='Free pickup',
    costs='Free',
    conditions=['Tags attached', 'Unworn'],
    risk_score='7/10 – 🟢 Low risk',
    risk_level='green',
    benchmark='Better than most Indian fashion sites.',
    tip='Book the pickup early.',
)


def outcome(url: str = 'https://wearcomet.com', *, cached: bool = False) -> DecodeOutcome:
    return DecodeOutcome(
        url=url,
        summary=SUMMARY,
        cached=cached,
        resolution=ResolutionResult(
            text='Refunds are issued within 7 days.',
            domain='wearcomet.com',
            source_url='https://wearcomet.com/policies/refund-policy',
            stage='candidate',
        ),
    )


class AnalyzeFormTests(SimpleTestCase):
    def test_bare_domain_is_normalised(self) -> None:
        form = AnalyzeForm({'url': '  wearcomet.com  '})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['url'], 'https://wearcomet.com')

    def test_explicit_scheme_is_kept(self) -> None:
        form = AnalyzeForm({'url': 'http://shop.example/p/1'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['url'], 'http://shop.example/p/1')

    def test_address_without_host_is_rejected(self) -> None:
        form = AnalyzeForm({'url': 'https://'})
        self.assertFalse(form.is_valid())
        self.assertIn('Enter a web address', form.errors['url'][0])


@override_settings(STORAGES=TEST_STORAGES)
class PolicyCardViewTests(SimpleTestCase):
    def setUp(self) -> None:
        self.client = Client()

    def test_home_renders_form(self) -> None:
        response = self.client.get(reverse('policy_decoder:home'))
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, 'policy_decoder/home.html')
        self.assertContains(response, 'name="url"')

    def test_post_redirects_to_shareable_permalink(self) -> None:
        response = self.client.post(reverse('policy_decoder:card'), data={'url': 'wearcomet.com'})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(
            response['Location'],
            reverse('policy_decoder:card') + '?url=https%3A%2F%2Fwearcomet.com',
        )

    def test_post_with_invalid_url_rerenders_form(self) -> None:
        response = self.client.post(reverse('policy_decoder:card'), data={'url': ''})
        self.assertEqual(response.status_code, 400)
        self.assertTemplateUsed(response, 'policy_decoder/home.html')

    @patch('policy_decoder.views.decode_policy')
    def test_card_renders_summary(self, mock_decode) -> None:
        mock_decode.return_value = outcome()

        response = self.client.get(reverse('policy_decoder:card'), {'url': 'wearcomet.com'})

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, 'policy_decoder/card.html')
        mock_decode.assert_called_once_with('https://wearcomet.com')
        self.assertContains(response, 'Comet')
        self.assertContains(response, '15 days')
        self.assertContains(response, 'risk-green')
        self.assertContains(response, 'Tags attached')
        self.assertContains(response, 'https://wearcomet.com/policies/refund-policy')
        self.assertContains(response, 'http://testserver/card/?url=https%3A%2F%2Fwearcomet.com')

    @patch('policy_decoder.views.decode_policy')
    def test_card_reports_summarisation_failure(self, mock_decode) -> None:
        mock_decode.side_effect = SummarizationError('quota exceeded')

        response = self.client.get(reverse('policy_decoder:card'), {'url': 'wearcomet.com'})

        self.assertEqual(response.status_code, 502)
        self.assertContains(response, 'AI summarisation failed: quota exceeded', status_code=502)

    def test_card_without_url_shows_form_errors(self) -> None:
        response = self.client.get(reverse('policy_decoder:card'))
        self.assertEqual(response.status_code, 400)
        self.assertTemplateUsed(response, 'policy_decoder/home.html')


class AnalyzeApiTests(SimpleTestCase):
    def setUp(self) -> None:
        self.client = Client(enforce_csrf_checks=True)
        self.url = reverse('policy_decoder:api_analyze')

    def post_json(self, payload):
        return self.client.post(self.url, data=json.dumps(payload), content_type='application/json')

    def test_get_is_not_allowed(self) -> None:
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.content, b'Only POST allowed')

    @patch('policy_decoder.views.decode_policy')
    def test_post_returns_card_record(self, mock_decode) -> None:
        mock_decode.return_value = outcome()

        response = self.post_json({'url': 'wearcomet.com'})

        self.assertEqual(response.status_code, 200)
        mock_decode.assert_called_once_with('wearcomet.com')
        data = response.json()
        self.assertEqual(
            sorted(data),
            sorted([
                'brand', 'category', 'returnWindow', 'refundType', 'returnMethod', 'costs',
                'conditions', 'riskScore', 'riskLevel', 'benchmark', 'tip',
            ]),
        )
        self.assertEqual(data['brand'], 'Comet')
        self.assertEqual(data['riskLevel'], 'green')

    @patch('policy_decoder.views.decode_policy')
    def test_form_encoded_body_is_accepted(self, mock_decode) -> None:
        mock_decode.return_value = outcome()

        response = self.client.post(self.url, data={'url': 'wearcomet.com'})

        self.assertEqual(response.status_code, 200)
        mock_decode.assert_called_once_with('wearcomet.com')

    @patch('policy_decoder.views.decode_policy')
    def test_missing_or_non_string_url_returns_fallback(self, mock_decode) -> None:
        expected = fallback_summary('Unknown').as_dict()

        for payload in ({}, {'url': ''}, {'url': 42}, ['wearcomet.com']):
            response = self.post_json(payload)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json(), expected)

        mock_decode.assert_not_called()

    def test_malformed_json_returns_fallback(self) -> None:
        response = self.client.post(self.url, data='{not json', content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['brand'], 'Unknown')

    @patch('policy_decoder.views.decode_policy')
    def test_invalid_address_returns_fallback(self, mock_decode) -> None:
        mock_decode.side_effect = InvalidTargetError('No hostname')

        response = self.post_json({'url': 'https://'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['riskLevel'], 'red')

    @patch('policy_decoder.views.decode_policy')
    def test_summarisation_failure_returns_500(self, mock_decode) -> None:
        mock_decode.side_effect = SummarizationError('insufficient_quota')

        response = self.post_json({'url': 'wearcomet.com'})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'AI summarisation failed: insufficient_quota'})


class SettingsTests(SimpleTestCase):
    def test_settings_load_under_pytest_without_environment(self):
        env = {
            key: value
            for key, value in os.environ.items()
            if key not in {'DJANGO_SECRET_KEY', 'DJANGO_DEBUG', 'PYTEST_CURRENT_TEST'}
        }
        with patch.dict(os.environ, env, clear=True):
            loaded = runpy.run_path(project_settings.__file__)

        self.assertTrue(loaded['RUNNING_TESTS'])
        self.assertTrue(loaded['DEBUG'])
        self.assertFalse(loaded['SECURE_SSL_REDIRECT'])
