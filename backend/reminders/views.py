from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
import logging

from backend.core.utils import create_audit_log
from . import lifecycle
from .cache import get_reminder_list_cache_key, get_cached_reminder_list, cache_reminder_list
from .dismissals import SessionDismissalStore
from .exceptions import InvalidReminder, ReminderStateError
from .models import PaymentReminder
from .serializers import PaymentReminderSerializer, NextReminderSerializer, NotificationSerializer
from .visibility import visible_reminders, management_order

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 'true', 'yes')


def _reference_date(request):
    """Optional ?date=YYYY-MM-DD override for "today"; None means the real clock"""
    raw = request.query_params.get('date')
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValueError(f"Invalid date '{raw}', expected YYYY-MM-DD")
    return value


def _get_reminder(pk):
    return get_object_or_404(PaymentReminder.objects.select_related('caterer'), pk=pk)


def _active_queryset():
    return PaymentReminder.objects.select_related('caterer').filter(is_acknowledged=False)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_reminder_list_create(request):
    """List all payment reminders (management view) or create a new one"""
    try:
        now = _reference_date(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    if request.method == 'GET':
        caterer = request.query_params.get('caterer', '')
        status_filter = request.query_params.get('status', '')
        acknowledged = request.query_params.get('acknowledged', '')
        ordering = request.query_params.get('ordering', '')
        include_snoozed = request.query_params.get('include_snoozed', '').lower() in TRUE_VALUES
        today = now or timezone.localdate()

        if caterer and not caterer.isdigit():
            return Response({'error': f"Invalid caterer '{caterer}', expected a numeric id"}, status=status.HTTP_400_BAD_REQUEST)

        cache_key = get_reminder_list_cache_key(
            today.isoformat(), caterer, status_filter, acknowledged, ordering, include_snoozed
        )
        cached_data = get_cached_reminder_list(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        queryset = PaymentReminder.objects.select_related('caterer').all()
        if caterer:
            queryset = queryset.filter(caterer_id=caterer)
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if acknowledged:
            queryset = queryset.filter(is_acknowledged=acknowledged.lower() in TRUE_VALUES)
        if not include_snoozed:
            # A future next reminder date hides the row until that day
            queryset = queryset.exclude(next_reminder_date__gt=today)

        reminders = list(queryset)
        if ordering == 'priority':
            reminders = management_order(reminders, today)

        serializer = PaymentReminderSerializer(reminders, many=True, context={'now': today})
        response_data = list(serializer.data)
        cache_reminder_list(cache_key, response_data)
        return Response(response_data)
    else:
        serializer = PaymentReminderSerializer(data=request.data, context={'now': now})
        if serializer.is_valid():
            reminder = serializer.save()
            logger.info(f"Payment reminder {reminder.id} created for caterer {reminder.caterer_id} due {reminder.original_due_date}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_reminder_detail(request, pk):
    """Retrieve, update or delete a payment reminder"""
    reminder = _get_reminder(pk)

    if request.method == 'GET':
        serializer = PaymentReminderSerializer(reminder)
        return Response(serializer.data)
    elif request.method == 'PATCH':
        serializer = PaymentReminderSerializer(reminder, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        acknowledge_requested = None
        if 'isAcknowledged' in request.data:
            acknowledge_requested = str(request.data['isAcknowledged']).lower() in TRUE_VALUES
            if not acknowledge_requested and reminder.is_acknowledged:
                return Response(
                    {'error': 'An acknowledged reminder cannot be reopened.'},
                    status=status.HTTP_400_BAD_REQUEST
                )

        try:
            reminder = serializer.save()
        except ReminderStateError as e:
            logger.warning(f"Update rejected for {pk}: {str(e)}")
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        if acknowledge_requested:
            reminder = lifecycle.acknowledge(reminder.pk, request=request)
        return Response(PaymentReminderSerializer(reminder).data)
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='PaymentReminder',
            object_id=reminder.id,
            object_name=reminder.caterer.name,
            object_reference=reminder.bill_number or None,
            changes={'amount': str(reminder.amount), 'original_due_date': reminder.original_due_date.isoformat()},
        )
        reminder.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_reminder_active(request):
    """Reminders to surface right now: due in exactly two days, not acknowledged, not dismissed this session"""
    try:
        now = _reference_date(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    store = SessionDismissalStore(request.session)
    try:
        reminders = visible_reminders(_active_queryset(), store.ids(), now)
    except InvalidReminder as e:
        logger.error(f"Active reminder computation failed: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    serializer = PaymentReminderSerializer(reminders, many=True, context={'now': now})
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_reminder_acknowledge(request, pk):
    """Permanently acknowledge a reminder (safe to repeat)"""
    try:
        reminder = lifecycle.acknowledge(pk, request=request)
    except PaymentReminder.DoesNotExist:
        raise Http404
    return Response(PaymentReminderSerializer(reminder).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_reminder_dismiss(request, pk):
    """Hide a reminder until the session ends"""
    store = SessionDismissalStore(request.session)
    try:
        reminder = lifecycle.dismiss(pk, store)
    except PaymentReminder.DoesNotExist:
        raise Http404
    return Response({'id': reminder.id, 'dismissed': True})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_reminder_mark_read(request, pk):
    """Mark a reminder as read"""
    try:
        reminder = lifecycle.mark_read(pk)
    except PaymentReminder.DoesNotExist:
        raise Http404
    return Response(PaymentReminderSerializer(reminder).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_reminder_next_reminder(request, pk):
    """Set the date staff want to be reminded again"""
    serializer = NextReminderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        reminder = lifecycle.set_next_reminder(pk, serializer.validated_data['nextReminderDate'], request=request)
    except PaymentReminder.DoesNotExist:
        raise Http404
    except ReminderStateError as e:
        logger.warning(f"Next reminder rejected for {pk}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(PaymentReminderSerializer(reminder).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Active payment reminders formatted for the notification dropdown"""
    try:
        now = _reference_date(request)
    except ValueError as e:
        return Response({'success': False, 'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    store = SessionDismissalStore(request.session)
    try:
        reminders = visible_reminders(_active_queryset(), store.ids(), now)
    except InvalidReminder as e:
        logger.error(f"Notification computation failed: {str(e)}")
        return Response({'success': False, 'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    data = NotificationSerializer(reminders, many=True).data
    return Response({'success': True, 'data': data, 'count': len(data)})
