import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """
    ``?page=&limit=`` pagination answering with
    ``{<results_key>, total, page, limit, total_pages}``.
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100
    results_key = 'results'

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response({
            self.results_key: data,
            'total': total,
            'page': self.page.number,
            'limit': limit,
            'total_pages': math.ceil(total / limit) if limit else 0,
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'required': [self.results_key, 'total', 'page', 'limit', 'total_pages'],
            'properties': {
                self.results_key: schema,
                'total': {'type': 'integer', 'example': 42},
                'page': {'type': 'integer', 'example': 1},
                'limit': {'type': 'integer', 'example': self.page_size},
                'total_pages': {'type': 'integer', 'example': 5},
            },
        }


class EventPagination(PageLimitPagination):
    results_key = 'events'


class RegistrationPagination(PageLimitPagination):
    results_key = 'registrations'
