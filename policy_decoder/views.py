"""Django views for the policy decoder app.

These views render the address form, the shareable policy card and a small
JSON API returning the same card record. All of them delegate the actual
work to :func:`policy_decoder.services.decode_policy`.
"""

from __future__ import annotations

import json
from urllib.parse import urlencode

from django.http import HttpRequest, HttpResponse, HttpResponseNotAllowed, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .exceptions import InvalidTargetError, SummarizationError
from .forms import AnalyzeForm
from .services import decode_policy
from .summarizer import fallback_summary


def home(request: HttpRequest) -> HttpResponse:
    """Render the landing page with an empty address form."""
    return render(request, 'policy_decoder/home.html', {'form': AnalyzeForm()})


@require_http_methods(['GET', 'POST'])
def policy_card(request: HttpRequest) -> HttpResponse:
    """Render the policy card for ``?url=``.

    A POST from the home form is validated and redirected to the GET
    permalink so the resulting page can be shared or bookmarked.
    """
    if request.method == 'POST':
        form = AnalyzeForm(request.POST)
        if form.is_valid():
            query = urlencode({'url': form.cleaned_data['url']})
            return redirect(f"{reverse('policy_decoder:card')}?{query}")
        return render(request, 'policy_decoder/home.html', {'form': form}, status=400)

    form = AnalyzeForm(request.GET)
    if not form.is_valid():
        return render(request, 'policy_decoder/home.html', {'form': form}, status=400)

    url = form.cleaned_data['url']
    try:
        outcome = decode_policy(url)
    except SummarizationError as exc:
        return render(
            request,
            'policy_decoder/home.html',
            {'form': form, 'error': f'AI summarisation failed: {exc}'},
            status=502,
        )

    share_url = request.build_absolute_uri(
        f"{reverse('policy_decoder:card')}?{urlencode({'url': outcome.url})}"
    )
    return render(
        request,
        'policy_decoder/card.html',
        {
            'summary': outcome.summary,
            'url': outcome.url,
            'cached': outcome.cached,
            'resolution': outcome.resolution,
            'share_url': share_url,
        },
    )


def _request_url(request: HttpRequest) -> object:
    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return payload.get('url') if isinstance(payload, dict) else None
    return request.POST.get('url')


@csrf_exempt
def api_analyze(request: HttpRequest) -> HttpResponse:
    """JSON endpoint returning the card record for a posted ``url``."""
    if request.method != 'POST':
        return HttpResponseNotAllowed(['POST'], 'Only POST allowed')

    url = _request_url(request)
    if not url or not isinstance(url, str):
        return JsonResponse(fallback_summary('Unknown').as_dict())

    try:
        outcome = decode_policy(url)
    except InvalidTargetError:
        return JsonResponse(fallback_summary('Unknown').as_dict())
    except SummarizationError as exc:
        return JsonResponse({'error': f'AI summarisation failed: {exc}'}, status=500)

    return JsonResponse(outcome.summary.as_dict())
