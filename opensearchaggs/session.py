import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from opensearchpy import OpenSearch

from opensearchaggs.aggs import FIELD_KINDS
from opensearchaggs.config import Settings

Host = Union[str, dict]

FIELD_TYPES = {
    'number': {
        'long',
        'integer',
        'short',
        'byte',
        'double',
        'float',
        'half_float',
        'scaled_float',
        'unsigned_long',
    },
    'date': {'date', 'date_nanos'},
    'geo_point': {'geo_point'},
}

# OpenSearch reports its own version line; every release speaks the 7.x query DSL
OPENSEARCH_COMPAT_VERSION = 7


def iter_mapping_fields(properties: Dict[str, Any], prefix: str = '') -> Iterator[Tuple[str, str]]:
    """Yield ``(path, mapping type)`` for every leaf field of a mapping, sub fields included."""
    for name, definition in properties.items():
        path = f'{prefix}{name}'
        if 'properties' in definition:
            yield from iter_mapping_fields(definition['properties'], f'{path}.')
            continue

        yield path, definition.get('type', 'object')
        for sub_name, sub_definition in definition.get('fields', {}).items():
            yield f'{path}.{sub_name}', sub_definition.get('type', 'object')


class SearchSession:
    """
    Datasource side of the aggregation editor: lists candidate fields for
    field-taking aggregations and discovers the backend version.
    """

    def __init__(
        self,
        hosts: Union[Host, List[Host]],
        user: str,
        password: str,
        index: Optional[str] = None,
        **kwargs,
    ) -> None:
        """
        :arg hosts: list of nodes, or a single node, we should connect to.
            Node should be a dictionary ({"host": "localhost", "port": 9200}),
            the entire dictionary will be passed to the :class:`~opensearchpy.Connection`
            class as kwargs, or a string in the format of ``host[:port]`` which will be
            translated to a dictionary automatically.

        :arg user: http auth username

        :arg password: http auth password

        :arg index: default index (or pattern) fields are listed from

        :arg kwargs: any additional arguments will be passed on to the opensearch-py call
        """
        self.index = index
        self.client = OpenSearch(
            hosts=hosts,
            http_auth=(user, password),
            http_compress=True,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs):
        settings = settings or Settings()
        return cls(settings.hosts, settings.user, settings.password, index=settings.index, **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.client.close()

    def list_fields(self, kind: str = 'any', index: Optional[str] = None) -> List[str]:
        """
        :arg kind: one of ``FIELD_KINDS``; ``'any'`` lists every leaf field

        :arg index: index or pattern to read the mapping of, defaults to the session's
        """
        assert kind in FIELD_KINDS, f'check field kind: {kind}'
        index = index or self.index
        assert index, 'session has no index'

        resp = self.client.indices.get_mapping(index=index)
        fields = set()
        for body in resp.values():
            mappings = body.get('mappings', {})
            if 'properties' not in mappings:
                # mappings keyed by document type, from before types were removed
                mappings = next(iter(mappings.values()), {})
            for path, field_type in iter_mapping_fields(mappings.get('properties', {})):
                if kind == 'any' or field_type in FIELD_TYPES[kind]:
                    fields.add(path)

        logging.debug('%s fields of %s: %s', kind, index, len(fields))
        return sorted(fields)

    def backend_version(self) -> int:
        info = self.client.info()
        version = info['version']
        if version.get('distribution') == 'opensearch':
            return OPENSEARCH_COMPAT_VERSION
        return int(version['number'].split('.')[0])
