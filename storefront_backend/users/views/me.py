from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import ProfileSerializer, ProfileUpdateSerializer


class MeView(APIView):
    """
    Current customer profile.

    Checkout reads the document and stored delivery address from here,
    so customers keep them current through PATCH.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ProfileSerializer

    @extend_schema(
        responses={200: ProfileSerializer},
        description="Get current authenticated user profile",
    )
    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    @extend_schema(
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer},
        description="Update contact data and stored delivery address",
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(
            instance=request.user, data=request.data, partial=True
        )
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(ProfileSerializer(user).data)
