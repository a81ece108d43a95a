# NCSTACK v1.0
'''Build docker-compose documents from service descriptors.'''

import yaml

# Keys are emitted in this order; anything else in a descriptor is ignored
_KEY_ORDER = [
    'image', 'container_name', 'restart', 'init', 'hostname', 'extra_hosts',
    'command', 'security_opt', 'depends_on', 'healthcheck', 'ports', 'expose',
    'environment', 'volumes', 'labels', 'networks'
]


class _ComposeDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper, value):
    # Multi-line commands stay readable as block scalars
    if '\n' in value:
        return dumper.represent_scalar('tag:yaml.org,2002:str', value.strip('\n') + '\n', style='|')
    return dumper.represent_scalar('tag:yaml.org,2002:str', value)


_ComposeDumper.add_representer(str, _represent_str)


def build_service(service):
    '''Compose mapping for one service descriptor'''
    definition = {}
    for key in _KEY_ORDER:
        if key not in service:
            continue
        value = service[key]
        if key == 'depends_on':
            value = {dependency: {'condition': condition} for dependency, condition in value.items()}
        definition[key] = value
    return definition


def build_compose(services, external_networks=()):
    '''Full compose document as a dict'''
    compose = {'services': {service['name']: build_service(service) for service in services}}
    if external_networks:
        compose['networks'] = {network: {'external': True} for network in external_networks}
    return compose


def render_compose(services, external_networks=()):
    '''docker-compose.yml content for the given descriptors'''
    return yaml.dump(
        build_compose(services, external_networks),
        Dumper=_ComposeDumper,
        default_flow_style=False,
        sort_keys=False,
        width=4096,
        allow_unicode=True
    )
