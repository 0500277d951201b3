"""Page-number pagination with the ``{data, meta}`` envelope used by the worklists."""

import math
from collections import OrderedDict

from rest_framework.exceptions import ParseError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class QueuePagination(PageNumberPagination):
    """``?page=`` / ``?page_size=``; without ``page_size`` everything is returned.

    ``page=0`` is rejected with 400. Other non-positive or non-numeric pages
    fall back to page 1, and pages past the end come back with empty ``data``
    and the usual ``meta`` instead of a 404.
    """
    page_size = None
    page_size_query_param = 'page_size'
    max_page_size = 200

    def get_page_number(self, request, paginator=None):
        raw = request.query_params.get(self.page_query_param)
        try:
            number = int(raw)
        except (TypeError, ValueError):
            return 1
        if number == 0:
            raise ParseError('Invalid page data type')
        return max(number, 1)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        page_size = self.get_page_size(request)
        if not page_size:
            return None

        self.page_number = self.get_page_number(request)
        self.total_data = queryset.count()
        self.total_page = math.ceil(self.total_data / page_size)
        offset = (self.page_number - 1) * page_size
        return list(queryset[offset:offset + page_size])

    def get_paginated_response(self, data):
        number = self.page_number
        return Response(OrderedDict([
            ('data', data),
            ('meta', OrderedDict([
                ('current_page', number),
                ('previous_page', number - 1 if number > 1 else None),
                ('next_page', number + 1 if number < self.total_page else None),
                ('total_page', self.total_page),
                ('total_data', self.total_data),
            ])),
        ]))

    @staticmethod
    def unpaginated_response(data):
        return Response(OrderedDict([
            ('data', data),
            ('meta', OrderedDict([
                ('current_page', 1),
                ('previous_page', None),
                ('next_page', None),
                ('total_page', 1),
                ('total_data', len(data)),
            ])),
        ]))
