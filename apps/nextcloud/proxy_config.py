# NCSTACK v1.0
'''Traefik static (traefik.yml) and dynamic (dynamic.yml) configuration.'''

from passlib.hash import apr_md5_crypt

from config import PROXY_NETWORK

DASHBOARD_USER = 'admin'

TLS_CIPHER_SUITES = [
    'TLS_ECDHE_ECDSA_WITH_AES_256_GCM_SHA384',
    'TLS_ECDHE_RSA_WITH_AES_256_GCM_SHA384',
    'TLS_ECDHE_ECDSA_WITH_AES_128_GCM_SHA256',
    'TLS_ECDHE_RSA_WITH_AES_128_GCM_SHA256',
    'TLS_ECDHE_ECDSA_WITH_CHACHA20_POLY1305',
    'TLS_ECDHE_RSA_WITH_CHACHA20_POLY1305',
]


def hash_dashboard_password(password):
    '''APR1 (htpasswd) hash accepted by Traefik basicAuth'''
    return apr_md5_crypt.hash(password)


def render_traefik_yml(letsencrypt_email):
    '''Static configuration: entry points, providers, ACME resolver'''
    lines = [
        "api:",
        "  dashboard: true",
        "  insecure: false",
        "  debug: false",
        "",
        "ping: {}",
        "",
        "entryPoints:",
        "  web:",
        "    address: \":80\"",
        "    http:",
        "      redirections:",
        "        entryPoint:",
        "          to: websecure",
        "          scheme: https",
        "",
        "  websecure:",
        "    address: \":443\"",
        "    http:",
        "      middlewares:",
        "        - secureHeaders@file",
        "      tls:",
        "        certResolver: letsencrypt",
        "",
        "providers:",
        "  docker:",
        "    endpoint: \"unix:///var/run/docker.sock\"",
        "    exposedByDefault: false",
        f"    network: {PROXY_NETWORK}",
        "  file:",
        "    watch: true",
        "    filename: /config/dynamic.yml",
        "",
        "certificatesResolvers:",
        "  letsencrypt:",
        "    acme:",
        f"      email: '{letsencrypt_email}'",
        "      storage: 'acme.json'",
        "      tlsChallenge: {}",
        "",
        "log:",
        "  level: INFO",
        "",
        "accessLog: {}",
    ]
    return '\n'.join(lines) + '\n'


def render_dynamic_yml(password_hash, user=DASHBOARD_USER):
    '''Dynamic configuration: middlewares and TLS policy'''
    lines = [
        "# Dynamic configuration",
        "http:",
        "  middlewares:",
        "    secureHeaders:",
        "      headers:",
        "        sslRedirect: true",
        "        forceSTSHeader: true",
        "        stsIncludeSubdomains: true",
        "        stsPreload: true",
        "        stsSeconds: 15552000",
        "        contentTypeNosniff: true",
        "        browserXssFilter: true",
        "        referrerPolicy: \"strict-origin-when-cross-origin\"",
        "        customFrameOptionsValue: \"SAMEORIGIN\"",
        "        customRequestHeaders:",
        "          X-Forwarded-Proto: \"https\"",
        "",
        "    user-auth:",
        "      basicAuth:",
        "        users:",
        f"          - \"{user}:{password_hash}\"",
        "",
        "    traefik-stripprefix:",
        "      stripPrefix:",
        "        prefixes:",
        "          - \"/traefik\"",
        "        forceSlash: false",
        "",
        "    redirect-to-https:",
        "      redirectScheme:",
        "        scheme: https",
        "        permanent: true",
        "",
        "    nextcloud-headers:",
        "      headers:",
        "        customRequestHeaders:",
        "          X-Forwarded-Proto: \"https\"",
        "        customResponseHeaders:",
        "          X-Frame-Options: \"SAMEORIGIN\"",
        "          X-Content-Type-Options: \"nosniff\"",
        "          X-XSS-Protection: \"1; mode=block\"",
        "          Referrer-Policy: \"strict-origin-when-cross-origin\"",
        "",
        "tls:",
        "  options:",
        "    default:",
        "      cipherSuites:",
    ]
    lines += [f"        - {suite}" for suite in TLS_CIPHER_SUITES]
    lines += [
        "      minVersion: VersionTLS12",
        "      maxVersion: VersionTLS13",
    ]
    return '\n'.join(lines) + '\n'
