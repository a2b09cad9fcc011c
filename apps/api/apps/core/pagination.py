"""
Page/limit pagination used by every list endpoint.
"""
import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """
    ``?page=<n>&limit=<m>`` (defaults 1 and 10).

    Response body: ``{results, page, limit, total, pages}`` where
    ``pages = ceil(total / limit)``. A page past the end yields an empty
    ``results`` list rather than a 404.
    """

    page_size = 10
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        self.page_number = self._get_page_number(request)
        self.total = len(queryset) if isinstance(queryset, list) else queryset.count()

        offset = (self.page_number - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def _get_page_number(self, request):
        try:
            page = int(request.query_params.get(self.page_query_param, 1))
        except (TypeError, ValueError):
            return 1
        return max(page, 1)

    def get_paginated_response(self, data):
        return Response({
            'results': data,
            'page': self.page_number,
            'limit': self.limit,
            'total': self.total,
            'pages': math.ceil(self.total / self.limit) if self.limit else 0,
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'required': ['results', 'page', 'limit', 'total', 'pages'],
            'properties': {
                'results': schema,
                'page': {'type': 'integer', 'example': 1},
                'limit': {'type': 'integer', 'example': 10},
                'total': {'type': 'integer', 'example': 42},
                'pages': {'type': 'integer', 'example': 5},
            },
        }
