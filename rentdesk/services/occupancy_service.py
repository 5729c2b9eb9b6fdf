"""
Occupancy rules shared by the property and rental unit endpoints.
"""
import logging
from rentdesk import db
from rentdesk.models.rental_unit import RentalUnit

logger = logging.getLogger(__name__)

# Statuses set by hand that unit occupancy must not overwrite
MANUAL_PROPERTY_STATUSES = ('maintenance', 'renovation')


class OccupancyService:

    @staticmethod
    def derive_status(units):
        """Property status implied by its units"""
        if not units:
            return 'vacant'
        occupied = sum(1 for u in units if u.status == 'occupied')
        if occupied == len(units):
            return 'occupied'
        if occupied > 0:
            return 'partially_occupied'
        return 'vacant'

    @staticmethod
    def sync_property_status(property):
        """Update property.status from its units; returns True when it changed"""
        if property.status in MANUAL_PROPERTY_STATUSES:
            return False

        units = property.rental_units.all()
        status = OccupancyService.derive_status(units)
        if status != property.status:
            logger.info('Property %s status %s -> %s', property.id, property.status, status)
            property.status = status
            return True
        return False

    @staticmethod
    def has_capacity(property):
        return property.rental_units.count() < (property.number_of_rental_units or 0)

    @staticmethod
    def unit_number_taken(property_id, unit_number, exclude_id=None):
        query = RentalUnit.query.filter_by(property_id=property_id, unit_number=unit_number)
        if exclude_id is not None:
            query = query.filter(RentalUnit.id != exclude_id)
        return db.session.query(query.exists()).scalar()

    @staticmethod
    def property_capacity(property):
        active_units = property.rental_units.filter_by(is_active=True).all()

        total_units = len(active_units)
        total_rooms = sum(u.number_of_rooms for u in active_units)
        total_toilets = sum(u.number_of_toilets for u in active_units)

        max_units = property.number_of_rental_units or 0
        bedrooms = property.bedrooms or 0
        bathrooms = property.bathrooms or 0

        remaining_units = max(0, max_units - total_units)
        remaining_rooms = max(0, bedrooms - total_rooms)
        remaining_toilets = max(0, bathrooms - total_toilets)

        return {
            'property': {
                'id': property.id,
                'name': property.name,
                'bedrooms': bedrooms,
                'bathrooms': bathrooms,
                'maxUnits': max_units,
            },
            'current': {
                'totalUnits': total_units,
                'totalRooms': total_rooms,
                'totalToilets': total_toilets,
            },
            'remaining': {
                'units': remaining_units,
                'rooms': remaining_rooms,
                'toilets': remaining_toilets,
            },
            'canAddMore': {
                'units': remaining_units > 0,
                'rooms': remaining_rooms > 0,
                'toilets': remaining_toilets > 0,
            },
        }
