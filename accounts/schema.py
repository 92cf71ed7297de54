"""
drf-spectacular extension for the JWT bearer authentication.

Registers JWTAuthentication so the OpenAPI schema documents the
Authorization: Bearer <access_token> security scheme.
"""

from drf_spectacular.extensions import OpenApiAuthenticationExtension


class JWTBearerAuthExtension(OpenApiAuthenticationExtension):
    target_class = 'accounts.authentication.JWTAuthentication'
    name = 'BearerJWT'

    def get_security_definition(self, auto_schema):
        return {
            'type': 'http',
            'scheme': 'bearer',
            'bearerFormat': 'JWT',
            'description': (
                'Access token returned by /api/auth/exchange-session/ or /api/auth/register/.\n'
                'Send as **Authorization: Bearer <access_token>**. Tokens expire after 60 minutes.'
            ),
        }
