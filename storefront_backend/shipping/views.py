# shipping/views.py

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework.response import Response
from rest_framework.views import APIView

from common.api import domain_error_response
from common.exceptions import StorefrontError
from shipping.serializers import FreightOptionSerializer, FreightQuoteInputSerializer
from shipping.services import quote_freight
from users.permissions import IsCustomer


class FreightQuoteView(APIView):
    permission_classes = [IsCustomer]
    serializer_class = FreightOptionSerializer

    @extend_schema(
        request=FreightQuoteInputSerializer,
        responses={200: FreightOptionSerializer(many=True)},
        description="Freight options for the current cart.",
        examples=[
            OpenApiExample(
                "Insured quote",
                value={"postal_code": "01310-100", "insured": True},
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = FreightQuoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            options = quote_freight(
                request.user,
                serializer.validated_data["postal_code"],
                insured=serializer.validated_data["insured"],
            )
        except StorefrontError as exc:
            return domain_error_response(exc)

        return Response(FreightOptionSerializer(options, many=True).data)
