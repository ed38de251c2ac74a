import os

from hypothesis import settings, HealthCheck

settings.register_profile(
    'default',
    settings(
        deadline=None,
        max_examples=50,
        suppress_health_check=[HealthCheck.too_slow],
    ))

settings.register_profile(
    'thorough',
    settings(
        deadline=None,
        max_examples=1000,
        suppress_health_check=[HealthCheck.too_slow],
    ))

settings.load_profile(os.environ.get('HYPOTHESIS_PROFILE', 'default'))
