from django.apps import AppConfig


class PolicyDecoderConfig(AppConfig):
    """Configuration for the policy decoder Django app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'policy_decoder'
    verbose_name = 'Return policy decoder'
