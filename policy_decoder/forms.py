"""Forms for the policy decoder app."""

from __future__ import annotations

from django import forms

from .exceptions import InvalidTargetError
from .resolver import normalize_target


class AnalyzeForm(forms.Form):
    """Single-field form taking a store or product page address.

    Bare domains such as ``example.com`` are accepted; ``clean_url`` returns
    the normalised address with an explicit scheme.
    """

    url = forms.CharField(
        max_length=2048,
        label='Store or product URL',
        help_text='Paste a product page or just the shop domain (e.g. example.com).',
        widget=forms.TextInput(
            attrs={
                'placeholder': 'https://example.com/products/linen-shirt',
                'autofocus': True,
                'inputmode': 'url',
            }
        ),
    )

    def clean_url(self) -> str:
        raw_value = self.cleaned_data.get('url', '')
        try:
            target = normalize_target(raw_value)
        except InvalidTargetError as exc:
            raise forms.ValidationError('Enter a web address like example.com.') from exc
        return target.url
