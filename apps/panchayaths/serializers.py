"""
Serializers for panchayath domain resources.
"""
from rest_framework import serializers
from apps.panchayaths.models import Panchayath, Agent, ManagementTeam


class PanchayathSerializer(serializers.ModelSerializer):
    agent_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Panchayath
        fields = ['id', 'name', 'district', 'state', 'agent_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'agent_count', 'created_at', 'updated_at']


class AgentSerializer(serializers.ModelSerializer):
    panchayath_name = serializers.CharField(source='panchayath.name', read_only=True)

    class Meta:
        model = Agent
        fields = [
            'id', 'name', 'panchayath', 'panchayath_name', 'role',
            'phone', 'email', 'ward', 'superior',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'panchayath_name', 'created_at', 'updated_at']

    def validate(self, attrs):
        """A superior must be another agent of the same panchayath."""
        superior = attrs.get('superior', getattr(self.instance, 'superior', None))
        panchayath = attrs.get('panchayath', getattr(self.instance, 'panchayath', None))

        if superior is not None:
            if self.instance is not None and superior.pk == self.instance.pk:
                raise serializers.ValidationError({'superior': 'An agent cannot be their own superior'})
            if panchayath is not None and superior.panchayath_id != panchayath.pk:
                raise serializers.ValidationError({'superior': 'Superior must belong to the same panchayath'})
        return attrs


class ManagementTeamSerializer(serializers.ModelSerializer):
    class Meta:
        model = ManagementTeam
        fields = ['id', 'name', 'description', 'panchayath', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
